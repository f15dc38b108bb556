"""Made-live (published snapshot) records: append-only inserts and reads."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection

from forms_api.db.base import reader, transaction
from forms_api.logic.clock import parse_iso, to_iso
from forms_api.models.form import MadeLiveForm

logger = logging.getLogger(__name__)

_SELECT = "SELECT id, form_id, version_number, json_form_blob, created_at FROM made_live_forms"


def _row_to_made_live_form(row: Any) -> MadeLiveForm:
    return MadeLiveForm(
        id=str(row[0]),
        form_id=str(row[1]),
        version_number=int(row[2]),
        json_form_blob=str(row[3]),
        created_at=parse_iso(row[4]),
    )


def insert_made_live_form(
    form_id: str,
    json_form_blob: str,
    created_at: datetime,
    conn: Connection | None = None,
) -> MadeLiveForm:
    with transaction(conn) as c:
        row = c.execute(
            sql_text("SELECT COALESCE(MAX(version_number), 0) FROM made_live_forms WHERE form_id = :fid"),
            {"fid": str(form_id)},
        ).fetchone()
        record = MadeLiveForm(
            id=str(uuid.uuid4()),
            form_id=str(form_id),
            version_number=int(row[0] if row and row[0] is not None else 0) + 1,
            json_form_blob=json_form_blob,
            created_at=created_at,
        )
        c.execute(
            sql_text(
                "INSERT INTO made_live_forms (id, form_id, version_number, json_form_blob, created_at) "
                "VALUES (:id, :fid, :v, :blob, :at)"
            ),
            {
                "id": record.id,
                "fid": record.form_id,
                "v": record.version_number,
                "blob": record.json_form_blob,
                "at": to_iso(record.created_at),
            },
        )
    return record


def latest_made_live_form(form_id: str, conn: Connection | None = None) -> Optional[MadeLiveForm]:
    with reader(conn) as c:
        row = c.execute(
            sql_text(f"{_SELECT} WHERE form_id = :fid ORDER BY version_number DESC LIMIT 1"),
            {"fid": str(form_id)},
        ).fetchone()
    return _row_to_made_live_form(row) if row else None


def list_made_live_forms(form_id: str) -> List[MadeLiveForm]:
    with reader() as c:
        rows = c.execute(
            sql_text(f"{_SELECT} WHERE form_id = :fid ORDER BY version_number ASC"),
            {"fid": str(form_id)},
        ).fetchall()
    return [_row_to_made_live_form(r) for r in rows]


def get_made_live_form(made_live_form_id: str) -> Optional[MadeLiveForm]:
    with reader() as c:
        row = c.execute(sql_text(f"{_SELECT} WHERE id = :id"), {"id": str(made_live_form_id)}).fetchone()
    return _row_to_made_live_form(row) if row else None


__all__ = [
    "insert_made_live_form",
    "latest_made_live_form",
    "list_made_live_forms",
    "get_made_live_form",
]
