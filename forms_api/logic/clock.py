"""UTC timestamp helpers shared by repositories and the snapshot engine.

Timestamps are persisted as fixed-width ISO-8601 text so lexical order
matches chronological order on every dialect.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(_FORMAT)


def parse_iso(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return datetime.strptime(str(value), _FORMAT).replace(tzinfo=timezone.utc)


def strictly_after(previous: Optional[datetime], now: datetime) -> datetime:
    """Return ``now`` or, when the clock has not moved past ``previous``, one microsecond later."""
    if previous is not None and now <= previous:
        return previous + timedelta(microseconds=1)
    return now
