"""Audit-log writer: persists one version row per committed domain event.

Subscribes to ``forms_api.logic.events`` and records who changed what and
when for forms, pages and routing conditions. This trail is independent of
the made-live snapshots used for publishing.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any, Dict, List

from sqlalchemy import text as sql_text

from forms_api.config import get_config
from forms_api.db.base import reader, transaction
from forms_api.logic import events
from forms_api.logic.clock import parse_iso, to_iso, utcnow

logger = logging.getLogger(__name__)


def _is_enabled(item_type: str) -> bool:
    return item_type in get_config().audit.enabled_item_types


def record_version(event_type: str, payload: Dict[str, Any]) -> None:
    """Event subscriber: insert a version row for auditable item events."""
    item_type = payload.get("item_type")
    item_id = payload.get("item_id")
    action = payload.get("event")
    if not item_type or not item_id or not action:
        return
    if not _is_enabled(str(item_type)):
        return
    changes = payload.get("changes") or {}
    with transaction() as conn:
        row = conn.execute(
            sql_text("SELECT COALESCE(MAX(sequence), 0) FROM versions WHERE item_type = :t AND item_id = :i"),
            {"t": item_type, "i": item_id},
        ).fetchone()
        sequence = int(row[0] if row and row[0] is not None else 0) + 1
        conn.execute(
            sql_text(
                "INSERT INTO versions (id, item_type, item_id, event, whodunnit, object_changes, sequence, created_at) "
                "VALUES (:id, :t, :i, :e, :w, :c, :s, :at)"
            ),
            {
                "id": str(uuid.uuid4()),
                "t": item_type,
                "i": item_id,
                "e": action,
                "w": payload.get("whodunnit"),
                "c": json.dumps(changes, default=str),
                "s": sequence,
                "at": to_iso(utcnow()),
            },
        )
    logger.info("audit.version_recorded type=%s item_type=%s item_id=%s seq=%s", event_type, item_type, item_id, sequence)


def list_versions(item_type: str, item_id: str) -> List[Dict[str, Any]]:
    """Return the revisions of one record, oldest first."""
    with reader() as conn:
        rows = conn.execute(
            sql_text(
                "SELECT id, event, whodunnit, object_changes, sequence, created_at FROM versions "
                "WHERE item_type = :t AND item_id = :i ORDER BY sequence ASC"
            ),
            {"t": item_type, "i": item_id},
        ).fetchall()
    return [
        {
            "id": str(r[0]),
            "item_type": item_type,
            "item_id": item_id,
            "event": str(r[1]),
            "whodunnit": r[2],
            "object_changes": json.loads(r[3]) if r[3] else {},
            "sequence": int(r[4]),
            "created_at": to_iso(parse_iso(r[5])),
        }
        for r in rows
    ]


def install() -> None:
    """Subscribe the writer to domain events (idempotent)."""
    events.subscribe(record_version)


def uninstall() -> None:
    events.unsubscribe(record_version)


__all__ = ["record_version", "list_versions", "install", "uninstall"]
