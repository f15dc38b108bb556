"""Routing condition endpoints nested under a form's page."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from forms_api.http.params import require_params
from forms_api.logic.form_aggregate import FormAggregate
from forms_api.models.form import ConditionParams

router = APIRouter(prefix="/forms/{form_id}/pages/{page_id}/conditions")
logger = logging.getLogger(__name__)


@router.get("", summary="List routing conditions of a page", operation_id="listConditions", tags=["Conditions"])
def list_conditions(form_id: str, page_id: str) -> JSONResponse:
    return JSONResponse(FormAggregate.load(form_id).conditions_json(page_id))


@router.post("", summary="Create a routing condition", operation_id="createCondition", tags=["Conditions"])
async def create_condition(form_id: str, page_id: str, request: Request) -> JSONResponse:
    aggregate = FormAggregate.load(form_id)
    aggregate.find_page(page_id)
    attrs = await require_params(request, "condition", ConditionParams)
    condition = aggregate.add_condition(page_id, attrs)
    return JSONResponse({"id": condition.id}, status_code=201)


@router.get("/{condition_id}", summary="Get a routing condition", operation_id="getCondition", tags=["Conditions"])
def show_condition(form_id: str, page_id: str, condition_id: str) -> JSONResponse:
    return JSONResponse(FormAggregate.load(form_id).condition_json(page_id, condition_id))


@router.put("/{condition_id}", include_in_schema=False)
@router.patch("/{condition_id}", summary="Update a routing condition", operation_id="updateCondition", tags=["Conditions"])
async def update_condition(form_id: str, page_id: str, condition_id: str, request: Request) -> JSONResponse:
    aggregate = FormAggregate.load(form_id)
    aggregate.find_condition(page_id, condition_id)
    attrs = await require_params(request, "condition", ConditionParams)
    aggregate.update_condition(page_id, condition_id, attrs)
    return JSONResponse({"success": True})


@router.delete("/{condition_id}", summary="Delete a routing condition", operation_id="deleteCondition", tags=["Conditions"])
def destroy_condition(form_id: str, page_id: str, condition_id: str) -> JSONResponse:
    FormAggregate.load(form_id).remove_condition(page_id, condition_id)
    return JSONResponse({"success": True})


__all__ = ["router"]
