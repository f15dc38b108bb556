"""Legacy answer-type translation applied at the request boundary.

Older clients send ``single_line``/``long_text`` as answer types and omit
settings for dates and addresses. When legacy support is switched on, writes
are converted to the current ``text`` + ``input_type`` shape and reads are
shown in the old shape. Both functions return new mappings and are
idempotent; with ``accept_legacy`` off they return an unchanged copy.
"""

from __future__ import annotations

from typing import Any, Dict

from forms_api.models.answer_settings import AnswerType, LEGACY_TEXT_ANSWER_TYPES

DEFAULT_ADDRESS_SETTINGS = {"input_type": {"uk_address": "true", "international_address": "false"}}
DEFAULT_DATE_SETTINGS = {"input_type": "other_date"}


def convert_old_answer_types_to_new_format(attrs: Dict[str, Any], *, accept_legacy: bool) -> Dict[str, Any]:
    out = dict(attrs)
    if not accept_legacy:
        return out
    answer_type = out.get("answer_type")
    if answer_type in LEGACY_TEXT_ANSWER_TYPES:
        out["answer_type"] = AnswerType.TEXT
        out["answer_settings"] = {"input_type": answer_type}
    elif answer_type == AnswerType.ADDRESS and not out.get("answer_settings"):
        out["answer_settings"] = {"input_type": dict(DEFAULT_ADDRESS_SETTINGS["input_type"])}
    elif answer_type == AnswerType.DATE and not out.get("answer_settings"):
        out["answer_settings"] = dict(DEFAULT_DATE_SETTINGS)
    return out


def display_new_answer_types_in_old_format(page: Dict[str, Any], *, accept_legacy: bool) -> Dict[str, Any]:
    out = dict(page)
    if not accept_legacy:
        return out
    answer_type = out.get("answer_type")
    if answer_type == AnswerType.TEXT:
        settings = out.get("answer_settings") or {}
        input_type = settings.get("input_type") if isinstance(settings, dict) else None
        if input_type in LEGACY_TEXT_ANSWER_TYPES:
            out["answer_type"] = input_type
            out["answer_settings"] = None
    elif answer_type in (AnswerType.DATE, AnswerType.ADDRESS):
        out["answer_settings"] = None
    return out


__all__ = [
    "convert_old_answer_types_to_new_format",
    "display_new_answer_types_in_old_format",
]
