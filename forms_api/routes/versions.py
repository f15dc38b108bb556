"""Audit-trail endpoints: revision history per form, page or condition."""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from forms_api.logic.audit_log import list_versions
from forms_api.logic.form_aggregate import FormAggregate

router = APIRouter(prefix="/forms/{form_id}")


@router.get("/versions", summary="Form revision history", operation_id="listFormVersions", tags=["Versions"])
def form_versions(form_id: str) -> JSONResponse:
    aggregate = FormAggregate.load(form_id)
    return JSONResponse(list_versions("Form", aggregate.id))


@router.get("/pages/{page_id}/versions", summary="Page revision history", operation_id="listPageVersions", tags=["Versions"])
def page_versions(form_id: str, page_id: str) -> JSONResponse:
    page = FormAggregate.load(form_id).find_page(page_id)
    return JSONResponse(list_versions("Page", page.id))


@router.get(
    "/pages/{page_id}/conditions/{condition_id}/versions",
    summary="Routing condition revision history",
    operation_id="listConditionVersions",
    tags=["Versions"],
)
def condition_versions(form_id: str, page_id: str, condition_id: str) -> JSONResponse:
    condition = FormAggregate.load(form_id).find_condition(page_id, condition_id)
    return JSONResponse(list_versions("Condition", condition.id))


__all__ = ["router"]
