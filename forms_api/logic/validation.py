"""Attribute validation for forms, pages and routing conditions.

Validators return an error map (attribute, or ``base`` for aggregate-level
problems, to a list of messages); an empty map means valid. Page validation
also returns the normalized attributes so typed answer settings are stored in
their canonical shape.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List, Tuple

from forms_api.models.answer_settings import ANSWER_TYPES, AnswerSettingsError, parse_answer_settings
from forms_api.models.form import Page
from forms_api.logic.routing import has_routing_errors

ErrorMap = Dict[str, List[str]]

BLANK = "can't be blank"
NOT_INCLUDED = "is not included in the list"
ROUTING_ERRORS_MESSAGE = "Form has routing validation errors"

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")


def form_slug_for(name: str | None) -> str:
    """URL-safe slug: lowercase alphanumeric runs joined by single hyphens."""
    return _NON_SLUG_CHARS.sub("-", str(name or "").lower()).strip("-")


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _add(errors: ErrorMap, key: str, message: str) -> None:
    errors.setdefault(key, []).append(message)


def validate_form(attrs: Dict[str, Any], pages: Iterable[Page]) -> ErrorMap:
    errors: ErrorMap = {}
    if _blank(attrs.get("name")):
        _add(errors, "name", BLANK)
    if attrs.get("question_section_completed") and has_routing_errors(pages):
        _add(errors, "base", ROUTING_ERRORS_MESSAGE)
    return errors


def validate_page(attrs: Dict[str, Any]) -> Tuple[Dict[str, Any], ErrorMap]:
    errors: ErrorMap = {}
    normalized = dict(attrs)
    if _blank(attrs.get("question_text")):
        _add(errors, "question_text", BLANK)

    answer_type = attrs.get("answer_type")
    if _blank(answer_type):
        _add(errors, "answer_type", BLANK)
    elif answer_type not in ANSWER_TYPES:
        _add(errors, "answer_type", NOT_INCLUDED)
    else:
        try:
            normalized["answer_settings"] = parse_answer_settings(answer_type, attrs.get("answer_settings"))
        except AnswerSettingsError as exc:
            for message in exc.messages:
                _add(errors, "answer_settings", message)

    normalized["is_optional"] = bool(attrs.get("is_optional") or False)
    return normalized, errors


def validate_condition(attrs: Dict[str, Any], page_ids: Iterable[str]) -> ErrorMap:
    errors: ErrorMap = {}
    if attrs.get("routing_page_id") not in set(page_ids):
        _add(errors, "routing_page_id", "must be a page of this form")
    return errors


__all__ = [
    "ErrorMap",
    "ROUTING_ERRORS_MESSAGE",
    "form_slug_for",
    "validate_form",
    "validate_page",
    "validate_condition",
]
