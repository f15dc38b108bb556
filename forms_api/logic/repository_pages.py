"""Page data access helpers.

Pages are always read in ascending ``position`` with their outgoing routing
conditions attached. Position values are written only through
``order_sequences`` and ``insert_page``.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Dict, List

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection

from forms_api.db.base import reader, transaction
from forms_api.logic.clock import parse_iso, to_iso
from forms_api.logic.repository_conditions import list_conditions_for_form
from forms_api.models.form import Page

logger = logging.getLogger(__name__)

PAGE_COLUMNS: tuple[str, ...] = (
    "id",
    "form_id",
    "question_text",
    "question_short_name",
    "hint_text",
    "answer_type",
    "answer_settings",
    "is_optional",
    "position",
    "created_at",
    "updated_at",
)
_SELECT = f"SELECT {', '.join(PAGE_COLUMNS)} FROM pages"


def _row_to_page(row: Any) -> Page:
    data = dict(zip(PAGE_COLUMNS, row))
    data["answer_settings"] = json.loads(data["answer_settings"]) if data["answer_settings"] else None
    data["is_optional"] = bool(data["is_optional"])
    data["position"] = int(data["position"])
    data["created_at"] = parse_iso(data["created_at"])
    data["updated_at"] = parse_iso(data["updated_at"])
    return Page(**data)


def _to_params(values: Dict[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key, value in values.items():
        if key == "answer_settings":
            out[key] = json.dumps(value) if value is not None else None
        elif isinstance(value, datetime):
            out[key] = to_iso(value)
        else:
            out[key] = value
    return out


def list_pages(form_id: str, conn: Connection | None = None) -> List[Page]:
    """Return the form's pages by ascending position with routing conditions attached."""
    with reader(conn) as c:
        rows = c.execute(
            sql_text(f"{_SELECT} WHERE form_id = :fid ORDER BY position ASC, id ASC"),
            {"fid": str(form_id)},
        ).fetchall()
        conditions = list_conditions_for_form(form_id, c)
    pages = [_row_to_page(r) for r in rows]
    for page in pages:
        page.routing_conditions = conditions.get(page.id, [])
    return pages


def insert_page(page: Page, conn: Connection | None = None) -> None:
    values = _to_params(page.model_dump(include=set(PAGE_COLUMNS)))
    placeholders = ", ".join(f":{k}" for k in PAGE_COLUMNS)
    with transaction(conn) as c:
        c.execute(sql_text(f"INSERT INTO pages ({', '.join(PAGE_COLUMNS)}) VALUES ({placeholders})"), values)


def update_page(page_id: str, values: Dict[str, Any], conn: Connection | None = None) -> None:
    values = {k: v for k, v in values.items() if k in PAGE_COLUMNS and k not in ("id", "form_id", "position")}
    if not values:
        return
    assignments = ", ".join(f"{k} = :{k}" for k in values)
    with transaction(conn) as c:
        c.execute(
            sql_text(f"UPDATE pages SET {assignments} WHERE id = :page_id"),
            {**_to_params(values), "page_id": str(page_id)},
        )


def delete_page(page_id: str, conn: Connection | None = None) -> None:
    """Delete a page and the routing conditions whose source it is."""
    try:
        with transaction(conn) as c:
            c.execute(sql_text("DELETE FROM routing_conditions WHERE routing_page_id = :id"), {"id": str(page_id)})
            c.execute(sql_text("DELETE FROM pages WHERE id = :id"), {"id": str(page_id)})
    except Exception:
        logger.error("delete_page failed page_id=%s", page_id, exc_info=True)
        raise


__all__ = [
    "PAGE_COLUMNS",
    "list_pages",
    "insert_page",
    "update_page",
    "delete_page",
]
