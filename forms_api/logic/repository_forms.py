"""Form data access helpers.

These functions encapsulate SQL for the ``forms`` table and the cascade
delete of a form's children, keeping route handlers and the aggregate free of
persistence details. Writes accept an optional connection so callers can
compose several of them into one transaction.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection

from forms_api.db.base import reader, transaction
from forms_api.logic.clock import parse_iso, strictly_after, to_iso
from forms_api.models.form import Form

logger = logging.getLogger(__name__)

FORM_COLUMNS: tuple[str, ...] = (
    "id",
    "name",
    "form_slug",
    "submission_email",
    "org",
    "creator_id",
    "privacy_policy_url",
    "what_happens_next_text",
    "support_email",
    "support_phone",
    "support_url",
    "support_url_text",
    "declaration_text",
    "question_section_completed",
    "declaration_section_completed",
    "created_at",
    "updated_at",
)
_SELECT = f"SELECT {', '.join(FORM_COLUMNS)} FROM forms"
_TIMESTAMPS = ("created_at", "updated_at")
_BOOLEANS = ("question_section_completed", "declaration_section_completed")


def _row_to_form(row: Any) -> Form:
    data = dict(zip(FORM_COLUMNS, row))
    for key in _TIMESTAMPS:
        data[key] = parse_iso(data[key])
    for key in _BOOLEANS:
        data[key] = bool(data[key])
    return Form(**data)


def _to_params(values: Dict[str, Any]) -> Dict[str, Any]:
    return {k: (to_iso(v) if isinstance(v, datetime) else v) for k, v in values.items()}


def get_form(form_id: str, conn: Connection | None = None) -> Optional[Form]:
    with reader(conn) as c:
        row = c.execute(sql_text(f"{_SELECT} WHERE id = :id"), {"id": str(form_id)}).fetchone()
    return _row_to_form(row) if row else None


def list_forms(org: str | None = None, creator_id: str | None = None) -> List[Form]:
    """Return forms matching every given filter, oldest first."""
    clauses: List[str] = []
    params: Dict[str, Any] = {}
    if org is not None:
        clauses.append("org = :org")
        params["org"] = org
    if creator_id is not None:
        clauses.append("creator_id = :creator_id")
        params["creator_id"] = str(creator_id)
    where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
    with reader() as c:
        rows = c.execute(sql_text(f"{_SELECT}{where} ORDER BY created_at ASC, id ASC"), params).fetchall()
    return [_row_to_form(r) for r in rows]


def insert_form(form: Form, conn: Connection | None = None) -> None:
    values = _to_params(form.model_dump(include=set(FORM_COLUMNS)))
    placeholders = ", ".join(f":{k}" for k in FORM_COLUMNS)
    with transaction(conn) as c:
        c.execute(sql_text(f"INSERT INTO forms ({', '.join(FORM_COLUMNS)}) VALUES ({placeholders})"), values)


def update_form(form_id: str, values: Dict[str, Any], conn: Connection | None = None) -> None:
    """Write the given columns; unknown keys are rejected."""
    unknown = set(values) - set(FORM_COLUMNS) - {"id"}
    if unknown:
        raise ValueError(f"unknown form columns: {sorted(unknown)}")
    values = {k: v for k, v in values.items() if k != "id"}
    if not values:
        return
    assignments = ", ".join(f"{k} = :{k}" for k in values)
    with transaction(conn) as c:
        c.execute(
            sql_text(f"UPDATE forms SET {assignments} WHERE id = :form_id"),
            {**_to_params(values), "form_id": str(form_id)},
        )


def touch_form(form_id: str, now: datetime, conn: Connection | None = None) -> datetime:
    """Advance ``updated_at`` strictly past its stored value and return it."""
    with transaction(conn) as c:
        row = c.execute(sql_text("SELECT updated_at FROM forms WHERE id = :id"), {"id": str(form_id)}).fetchone()
        if not row:
            return now
        stamp = strictly_after(parse_iso(row[0]), now)
        c.execute(
            sql_text("UPDATE forms SET updated_at = :at WHERE id = :id"),
            {"at": to_iso(stamp), "id": str(form_id)},
        )
    return stamp


def delete_form(form_id: str, conn: Connection | None = None) -> None:
    """Delete a form with its pages, their conditions and all made-live records."""
    params = {"id": str(form_id)}
    try:
        with transaction(conn) as c:
            c.execute(
                sql_text(
                    "DELETE FROM routing_conditions WHERE routing_page_id IN (SELECT id FROM pages WHERE form_id = :id)"
                ),
                params,
            )
            c.execute(sql_text("DELETE FROM pages WHERE form_id = :id"), params)
            c.execute(sql_text("DELETE FROM made_live_forms WHERE form_id = :id"), params)
            c.execute(sql_text("DELETE FROM forms WHERE id = :id"), params)
    except Exception:
        logger.error("delete_form failed form_id=%s", form_id, exc_info=True)
        raise


__all__ = [
    "FORM_COLUMNS",
    "get_form",
    "list_forms",
    "insert_form",
    "update_form",
    "touch_form",
    "delete_form",
]
