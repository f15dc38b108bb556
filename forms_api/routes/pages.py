"""Page endpoints nested under a form.

Page writes reset the form's ``question_section_completed`` flag. Legacy answer-type
translation is applied here, at the request boundary, when the
``accept_legacy_answer_types`` feature is on.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from forms_api.config import FeaturesConfig, get_features
from forms_api.http.params import require_params
from forms_api.logic.answer_types import (
    convert_old_answer_types_to_new_format,
    display_new_answer_types_in_old_format,
)
from forms_api.logic.form_aggregate import FormAggregate
from forms_api.models.form import Page, PageParams

router = APIRouter(prefix="/forms/{form_id}/pages")
logger = logging.getLogger(__name__)


def _mark_question_section_incomplete(aggregate: FormAggregate) -> None:
    aggregate.update({"question_section_completed": False})


def _keep_stored_settings(page: Page, attrs: dict) -> dict:
    """Legacy clients are shown null settings for dates and addresses, so an
    update of the same answer type without settings keeps what is stored."""
    if attrs.get("answer_settings") or not page.answer_settings:
        return attrs
    if attrs.get("answer_type", page.answer_type) != page.answer_type:
        return attrs
    return {**attrs, "answer_settings": page.answer_settings}


@router.get("", summary="List pages in position order", operation_id="listPages", tags=["Pages"])
def list_pages(form_id: str) -> JSONResponse:
    return JSONResponse(FormAggregate.load(form_id).pages_json())


@router.post("", summary="Create a page", operation_id="createPage", tags=["Pages"])
async def create_page(
    form_id: str,
    request: Request,
    features: FeaturesConfig = Depends(get_features),
) -> JSONResponse:
    aggregate = FormAggregate.load(form_id)
    attrs = await require_params(request, "page", PageParams)
    attrs = convert_old_answer_types_to_new_format(attrs, accept_legacy=features.accept_legacy_answer_types)
    page = aggregate.add_page(attrs)
    _mark_question_section_incomplete(aggregate)
    return JSONResponse({"id": page.id}, status_code=201)


@router.get("/{page_id}", summary="Get a page", operation_id="getPage", tags=["Pages"])
def show_page(
    form_id: str,
    page_id: str,
    features: FeaturesConfig = Depends(get_features),
) -> JSONResponse:
    body = FormAggregate.load(form_id).page_json(page_id)
    body = display_new_answer_types_in_old_format(body, accept_legacy=features.accept_legacy_answer_types)
    return JSONResponse(body)


@router.put("/{page_id}", include_in_schema=False)
@router.patch("/{page_id}", summary="Update a page", operation_id="updatePage", tags=["Pages"])
async def update_page(
    form_id: str,
    page_id: str,
    request: Request,
    features: FeaturesConfig = Depends(get_features),
) -> JSONResponse:
    aggregate = FormAggregate.load(form_id)
    page = aggregate.find_page(page_id)
    attrs = await require_params(request, "page", PageParams)
    if features.accept_legacy_answer_types:
        attrs = _keep_stored_settings(page, attrs)
    attrs = convert_old_answer_types_to_new_format(attrs, accept_legacy=features.accept_legacy_answer_types)
    aggregate.update_page(page_id, attrs)
    _mark_question_section_incomplete(aggregate)
    return JSONResponse({"success": True})


@router.delete("/{page_id}", summary="Delete a page", operation_id="deletePage", tags=["Pages"])
def destroy_page(form_id: str, page_id: str) -> JSONResponse:
    aggregate = FormAggregate.load(form_id)
    aggregate.remove_page(page_id)
    _mark_question_section_incomplete(aggregate)
    return JSONResponse({"success": True})


@router.put("/{page_id}/move_down", include_in_schema=False)
@router.post("/{page_id}/move_down", summary="Swap a page with the next one", operation_id="movePageDown", tags=["Pages"])
def move_down(form_id: str, page_id: str) -> JSONResponse:
    FormAggregate.load(form_id).move_page_down(page_id)
    return JSONResponse({"success": 1})


@router.put("/{page_id}/move_up", include_in_schema=False)
@router.post("/{page_id}/move_up", summary="Swap a page with the previous one", operation_id="movePageUp", tags=["Pages"])
def move_up(form_id: str, page_id: str) -> JSONResponse:
    FormAggregate.load(form_id).move_page_up(page_id)
    return JSONResponse({"success": 1})


__all__ = ["router"]
