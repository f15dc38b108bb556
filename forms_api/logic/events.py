"""Domain event constants and publisher.

Defines event type constants, a publish() callable used by the form aggregate
after every committed mutation, and a minimal subscriber registry used by the
audit-log writer.
"""

from __future__ import annotations

from contextvars import ContextVar
from typing import Any, Callable, Dict, List, Optional
import logging

logger = logging.getLogger(__name__)

FORM_CREATED = "form.created"
FORM_UPDATED = "form.updated"
FORM_DESTROYED = "form.destroyed"
FORM_MADE_LIVE = "form.made_live"
PAGE_CREATED = "page.created"
PAGE_UPDATED = "page.updated"
PAGE_DESTROYED = "page.destroyed"
CONDITION_CREATED = "condition.created"
CONDITION_UPDATED = "condition.updated"
CONDITION_DESTROYED = "condition.destroyed"

# Actor recorded on events raised while handling the current request
WHODUNNIT: ContextVar[Optional[str]] = ContextVar("whodunnit", default=None)

Subscriber = Callable[[str, Dict[str, Any]], None]
_SUBSCRIBERS: List[Subscriber] = []


def subscribe(handler: Subscriber) -> None:
    if handler not in _SUBSCRIBERS:
        _SUBSCRIBERS.append(handler)


def unsubscribe(handler: Subscriber) -> None:
    if handler in _SUBSCRIBERS:
        _SUBSCRIBERS.remove(handler)


def publish(event_type: str, payload: Dict[str, Any]) -> None:
    """Publish a domain event to the log and to every subscriber.

    Subscriber failures propagate: the audit trail must not silently miss a
    committed mutation.
    """
    payload = {**payload, "whodunnit": payload.get("whodunnit", WHODUNNIT.get())}
    logger.info("event_publish type=%s item_id=%s", event_type, payload.get("item_id"))
    for handler in list(_SUBSCRIBERS):
        handler(event_type, payload)


__all__ = [
    "FORM_CREATED",
    "FORM_UPDATED",
    "FORM_DESTROYED",
    "FORM_MADE_LIVE",
    "PAGE_CREATED",
    "PAGE_UPDATED",
    "PAGE_DESTROYED",
    "CONDITION_CREATED",
    "CONDITION_UPDATED",
    "CONDITION_DESTROYED",
    "WHODUNNIT",
    "subscribe",
    "unsubscribe",
    "publish",
]
