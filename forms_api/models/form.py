"""Pydantic models for forms, pages, routing conditions and published snapshots.

Record models mirror persisted rows; ``*Params`` models describe the writable
attributes accepted by the HTTP layer. Unknown request keys are ignored so the
params models double as the attribute whitelist.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


FORM_SCALAR_FIELDS: tuple[str, ...] = (
    "id",
    "name",
    "submission_email",
    "org",
    "creator_id",
    "created_at",
    "updated_at",
    "privacy_policy_url",
    "form_slug",
    "what_happens_next_text",
    "support_email",
    "support_phone",
    "support_url",
    "support_url_text",
    "declaration_text",
    "question_section_completed",
    "declaration_section_completed",
)


class RoutingCondition(BaseModel):
    id: str
    routing_page_id: str
    check_page_id: Optional[str] = None
    goto_page_id: Optional[str] = None
    answer_value: Optional[str] = None
    skip_to_end: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Page(BaseModel):
    id: str
    form_id: str
    question_text: str
    question_short_name: Optional[str] = None
    hint_text: Optional[str] = None
    answer_type: str
    answer_settings: Optional[Dict[str, Any]] = None
    is_optional: bool = False
    position: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    routing_conditions: List[RoutingCondition] = Field(default_factory=list)


class Form(BaseModel):
    id: str
    name: str
    form_slug: str
    submission_email: Optional[str] = None
    org: Optional[str] = None
    creator_id: Optional[str] = None
    privacy_policy_url: Optional[str] = None
    what_happens_next_text: Optional[str] = None
    support_email: Optional[str] = None
    support_phone: Optional[str] = None
    support_url: Optional[str] = None
    support_url_text: Optional[str] = None
    declaration_text: Optional[str] = None
    question_section_completed: bool = False
    declaration_section_completed: bool = False
    created_at: datetime
    updated_at: datetime


class MadeLiveForm(BaseModel):
    id: str
    form_id: str
    version_number: int
    json_form_blob: str
    created_at: datetime


class FormParams(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    name: Optional[str] = None
    # Accepted but always recomputed from name
    form_slug: Optional[str] = None
    submission_email: Optional[str] = None
    org: Optional[str] = None
    creator_id: Optional[str] = None
    privacy_policy_url: Optional[str] = None
    what_happens_next_text: Optional[str] = None
    support_email: Optional[str] = None
    support_phone: Optional[str] = None
    support_url: Optional[str] = None
    support_url_text: Optional[str] = None
    declaration_text: Optional[str] = None
    question_section_completed: Optional[bool] = None
    declaration_section_completed: Optional[bool] = None


class PageParams(BaseModel):
    model_config = ConfigDict(extra="ignore")

    question_text: Optional[str] = None
    question_short_name: Optional[str] = None
    hint_text: Optional[str] = None
    answer_type: Optional[str] = None
    answer_settings: Any = None
    is_optional: Optional[bool] = None


class ConditionParams(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    check_page_id: Optional[str] = None
    routing_page_id: Optional[str] = None
    goto_page_id: Optional[str] = None
    skip_to_end: Optional[bool] = None
    answer_value: Optional[str] = None


__all__ = [
    "FORM_SCALAR_FIELDS",
    "RoutingCondition",
    "Page",
    "Form",
    "MadeLiveForm",
    "FormParams",
    "PageParams",
    "ConditionParams",
]
