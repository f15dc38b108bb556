"""Answer types and their typed settings.

Each structured answer type owns a settings model; validation dispatches on
``answer_type`` through ``SETTINGS_MODELS``. Types missing from that mapping
take no settings at all.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError


class AnswerType:
    NUMBER = "number"
    ADDRESS = "address"
    DATE = "date"
    EMAIL = "email"
    NATIONAL_INSURANCE_NUMBER = "national_insurance_number"
    PHONE_NUMBER = "phone_number"
    SELECTION = "selection"
    ORGANISATION_NAME = "organisation_name"
    TEXT = "text"
    NAME = "name"


ANSWER_TYPES: tuple[str, ...] = (
    AnswerType.NUMBER,
    AnswerType.ADDRESS,
    AnswerType.DATE,
    AnswerType.EMAIL,
    AnswerType.NATIONAL_INSURANCE_NUMBER,
    AnswerType.PHONE_NUMBER,
    AnswerType.SELECTION,
    AnswerType.ORGANISATION_NAME,
    AnswerType.TEXT,
    AnswerType.NAME,
)

# Answer types accepted before `text` absorbed them as input types
LEGACY_TEXT_ANSWER_TYPES: tuple[str, ...] = ("single_line", "long_text")


class _Settings(BaseModel):
    # Unknown keys are dropped rather than rejected, like a parameter whitelist
    model_config = ConfigDict(extra="ignore")


class TextSettings(_Settings):
    input_type: Literal["single_line", "long_text", "other"]


class DateSettings(_Settings):
    input_type: Literal["date_of_birth", "other_date"]


class AddressInputType(_Settings):
    uk_address: bool
    international_address: bool


class AddressSettings(_Settings):
    input_type: AddressInputType


class SelectionOption(_Settings):
    name: str = Field(min_length=1)


class SelectionSettings(_Settings):
    only_one_option: bool
    selection_options: List[SelectionOption] = Field(min_length=1)
    title_needed: bool = False


class NameSettings(_Settings):
    input_type: Literal["full_name", "first_and_last_name", "first_middle_and_last_name"]
    title_needed: bool


SETTINGS_MODELS: Dict[str, Type[_Settings]] = {
    AnswerType.TEXT: TextSettings,
    AnswerType.DATE: DateSettings,
    AnswerType.ADDRESS: AddressSettings,
    AnswerType.SELECTION: SelectionSettings,
    AnswerType.NAME: NameSettings,
}


class AnswerSettingsError(ValueError):
    def __init__(self, messages: List[str]):
        super().__init__("; ".join(messages))
        self.messages = messages


def _format_pydantic_errors(exc: PydanticValidationError) -> List[str]:
    out: List[str] = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()))
        msg = str(err.get("msg", "is invalid"))
        out.append(f"{loc} {msg}".strip() if loc else msg)
    return out


def has_structured_settings(answer_type: Optional[str]) -> bool:
    return answer_type in SETTINGS_MODELS


def parse_answer_settings(answer_type: str, settings: Any) -> Optional[Dict[str, Any]]:
    """Validate ``settings`` for ``answer_type`` and return the normalized mapping.

    Raises AnswerSettingsError with human-readable messages when the pair is
    inconsistent. Unstructured types carry no settings, so whatever was sent
    normalizes to null.
    """
    model = SETTINGS_MODELS.get(answer_type)
    if model is None:
        return None

    if settings is None:
        raise AnswerSettingsError([f"can't be blank for answer type {answer_type}"])
    if not isinstance(settings, dict):
        raise AnswerSettingsError(["must be an object"])
    try:
        return model.model_validate(settings).model_dump()
    except PydanticValidationError as exc:
        raise AnswerSettingsError(_format_pydantic_errors(exc)) from exc


__all__ = [
    "AnswerType",
    "ANSWER_TYPES",
    "LEGACY_TEXT_ANSWER_TYPES",
    "SETTINGS_MODELS",
    "AnswerSettingsError",
    "has_structured_settings",
    "parse_answer_settings",
]
