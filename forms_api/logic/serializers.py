"""JSON shapes for forms, pages and routing conditions.

Page JSON carries the derived ``next_page`` (the following page by position)
and the page's outgoing routing conditions, each with its validation errors.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Sequence

from forms_api.logic.clock import to_iso
from forms_api.logic.routing import condition_validation_errors
from forms_api.models.form import FORM_SCALAR_FIELDS, Form, Page, RoutingCondition


def condition_json(condition: RoutingCondition, page_ids: Sequence[str]) -> Dict[str, Any]:
    return {
        "id": condition.id,
        "routing_page_id": condition.routing_page_id,
        "check_page_id": condition.check_page_id,
        "goto_page_id": condition.goto_page_id,
        "answer_value": condition.answer_value,
        "skip_to_end": condition.skip_to_end,
        "created_at": to_iso(condition.created_at),
        "updated_at": to_iso(condition.updated_at),
        "validation_errors": condition_validation_errors(condition, page_ids),
    }


def page_json(page: Page, next_page: Optional[str], page_ids: Sequence[str]) -> Dict[str, Any]:
    return {
        "id": page.id,
        "form_id": page.form_id,
        "question_text": page.question_text,
        "question_short_name": page.question_short_name,
        "hint_text": page.hint_text,
        "answer_type": page.answer_type,
        "answer_settings": page.answer_settings,
        "is_optional": page.is_optional,
        "position": page.position,
        "created_at": to_iso(page.created_at),
        "updated_at": to_iso(page.updated_at),
        "next_page": next_page,
        "routing_conditions": [condition_json(c, page_ids) for c in page.routing_conditions],
    }


def pages_json(pages: Sequence[Page]) -> List[Dict[str, Any]]:
    """Serialize pages already sorted by position, linking each to its successor."""
    ids = [p.id for p in pages]
    return [
        page_json(page, ids[idx + 1] if idx + 1 < len(ids) else None, ids)
        for idx, page in enumerate(pages)
    ]


def form_json(form: Form) -> Dict[str, Any]:
    data = form.model_dump(include=set(FORM_SCALAR_FIELDS))
    out: Dict[str, Any] = {}
    for key in FORM_SCALAR_FIELDS:
        value = data.get(key)
        out[key] = to_iso(value) if key in ("created_at", "updated_at") else value
    return out


def dump_canonical(document: Dict[str, Any]) -> str:
    """Serialize a snapshot document the same way every time it is stored."""
    return json.dumps(document, ensure_ascii=False, separators=(",", ":"))


__all__ = ["condition_json", "page_json", "pages_json", "form_json", "dump_canonical"]
