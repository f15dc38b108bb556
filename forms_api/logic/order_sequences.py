"""Page position reindexing helpers.

Provides backend-authoritative, contiguous 1-based positions for the pages
of a form when pages are inserted, removed or moved. These helpers are the
single source of truth for final position values and run inside the caller's
transaction so a mutation and its reindex commit together.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection

logger = logging.getLogger(__name__)

# Offset used to park positions while rewriting them under the unique index
_PARK_OFFSET = 1000000

MOVE_UP = "up"
MOVE_DOWN = "down"


def lock_form(form_id: str, conn: Connection) -> None:
    """Serialize position writes for one form.

    PostgreSQL takes a row lock on the form; SQLite already serializes writers
    at the database level and does not support FOR UPDATE.
    """
    if conn.dialect.name == "sqlite":
        return
    conn.execute(sql_text("SELECT id FROM forms WHERE id = :fid FOR UPDATE"), {"fid": str(form_id)})


def ordered_page_ids(form_id: str, conn: Connection) -> List[str]:
    rows = conn.execute(
        sql_text("SELECT id FROM pages WHERE form_id = :fid ORDER BY position ASC, id ASC"),
        {"fid": str(form_id)},
    ).fetchall()
    return [str(r[0]) for r in rows]


def next_position(form_id: str, conn: Connection) -> int:
    """Return the append position for a new page: one past the current count."""
    lock_form(form_id, conn)
    row = conn.execute(
        sql_text("SELECT COALESCE(MAX(position), 0), COUNT(*) FROM pages WHERE form_id = :fid"),
        {"fid": str(form_id)},
    ).fetchone()
    max_position = int(row[0]) if row and row[0] is not None else 0
    count = int(row[1]) if row and row[1] is not None else 0
    if max_position != count:
        # Positions drifted (manual edits); compact before appending
        reindex_pages(form_id, ordered_page_ids(form_id, conn), conn)
    return count + 1


def reindex_pages(form_id: str, ordered_ids: Sequence[str], conn: Connection) -> None:
    """Persist positions 1..N following ``ordered_ids``.

    Two-phase write to avoid unique collisions on (form_id, position): park
    every row at a large offset, then write the final contiguous values.
    """
    conn.execute(
        sql_text("UPDATE pages SET position = position + :off WHERE form_id = :fid"),
        {"off": _PARK_OFFSET, "fid": str(form_id)},
    )
    for idx, page_id in enumerate(ordered_ids):
        conn.execute(
            sql_text("UPDATE pages SET position = :pos WHERE form_id = :fid AND id = :pid"),
            {"pos": idx + 1, "fid": str(form_id), "pid": str(page_id)},
        )


def compact_positions(form_id: str, conn: Connection) -> List[str]:
    """Close gaps left by a removed page; returns the resulting order."""
    lock_form(form_id, conn)
    ids = ordered_page_ids(form_id, conn)
    reindex_pages(form_id, ids, conn)
    return ids


def move_page(form_id: str, page_id: str, direction: str, conn: Connection) -> bool:
    """Swap a page with its neighbour; returns False when already at the edge."""
    if direction not in (MOVE_UP, MOVE_DOWN):
        raise ValueError(f"unknown move direction {direction!r}")
    lock_form(form_id, conn)
    ids = ordered_page_ids(form_id, conn)
    if page_id not in ids:
        raise ValueError(f"page {page_id} is not in form {form_id}")
    idx = ids.index(page_id)
    target = idx - 1 if direction == MOVE_UP else idx + 1
    if target < 0 or target >= len(ids):
        logger.info("move_page noop form_id=%s page_id=%s direction=%s", form_id, page_id, direction)
        return False
    ids[idx], ids[target] = ids[target], ids[idx]
    reindex_pages(form_id, ids, conn)
    logger.info(
        "move_page form_id=%s page_id=%s direction=%s new_position=%s",
        form_id,
        page_id,
        direction,
        target + 1,
    )
    return True


__all__ = [
    "MOVE_UP",
    "MOVE_DOWN",
    "lock_form",
    "ordered_page_ids",
    "next_position",
    "reindex_pages",
    "compact_positions",
    "move_page",
]
