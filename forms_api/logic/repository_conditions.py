"""Routing condition data access helpers."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection

from forms_api.db.base import reader, transaction
from forms_api.logic.clock import parse_iso, to_iso
from forms_api.models.form import RoutingCondition

logger = logging.getLogger(__name__)

CONDITION_COLUMNS: tuple[str, ...] = (
    "id",
    "routing_page_id",
    "check_page_id",
    "goto_page_id",
    "answer_value",
    "skip_to_end",
    "created_at",
    "updated_at",
)
_SELECT = f"SELECT {', '.join('rc.' + c for c in CONDITION_COLUMNS)} FROM routing_conditions rc"


def _row_to_condition(row: Any) -> RoutingCondition:
    data = dict(zip(CONDITION_COLUMNS, row))
    data["skip_to_end"] = bool(data["skip_to_end"])
    data["created_at"] = parse_iso(data["created_at"])
    data["updated_at"] = parse_iso(data["updated_at"])
    return RoutingCondition(**data)


def _to_params(values: Dict[str, Any]) -> Dict[str, Any]:
    return {k: (to_iso(v) if isinstance(v, datetime) else v) for k, v in values.items()}


def list_conditions_for_form(form_id: str, conn: Connection | None = None) -> Dict[str, List[RoutingCondition]]:
    """Map each routing page id of the form to its conditions, oldest first."""
    with reader(conn) as c:
        rows = c.execute(
            sql_text(
                f"{_SELECT} JOIN pages p ON p.id = rc.routing_page_id "
                "WHERE p.form_id = :fid ORDER BY rc.created_at ASC, rc.id ASC"
            ),
            {"fid": str(form_id)},
        ).fetchall()
    out: Dict[str, List[RoutingCondition]] = {}
    for row in rows:
        cond = _row_to_condition(row)
        out.setdefault(cond.routing_page_id, []).append(cond)
    return out


def get_condition(condition_id: str, conn: Connection | None = None) -> Optional[RoutingCondition]:
    with reader(conn) as c:
        row = c.execute(sql_text(f"{_SELECT} WHERE rc.id = :id"), {"id": str(condition_id)}).fetchone()
    return _row_to_condition(row) if row else None


def insert_condition(condition: RoutingCondition, conn: Connection | None = None) -> None:
    values = _to_params(condition.model_dump(include=set(CONDITION_COLUMNS)))
    placeholders = ", ".join(f":{k}" for k in CONDITION_COLUMNS)
    with transaction(conn) as c:
        c.execute(
            sql_text(f"INSERT INTO routing_conditions ({', '.join(CONDITION_COLUMNS)}) VALUES ({placeholders})"),
            values,
        )


def update_condition(condition_id: str, values: Dict[str, Any], conn: Connection | None = None) -> None:
    values = {k: v for k, v in values.items() if k in CONDITION_COLUMNS and k != "id"}
    if not values:
        return
    assignments = ", ".join(f"{k} = :{k}" for k in values)
    with transaction(conn) as c:
        c.execute(
            sql_text(f"UPDATE routing_conditions SET {assignments} WHERE id = :condition_id"),
            {**_to_params(values), "condition_id": str(condition_id)},
        )


def delete_condition(condition_id: str, conn: Connection | None = None) -> None:
    with transaction(conn) as c:
        c.execute(sql_text("DELETE FROM routing_conditions WHERE id = :id"), {"id": str(condition_id)})


__all__ = [
    "CONDITION_COLUMNS",
    "list_conditions_for_form",
    "get_condition",
    "insert_condition",
    "update_condition",
    "delete_condition",
]
