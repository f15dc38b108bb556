"""Form endpoints: CRUD, filtering and the make-live/live/draft lifecycle."""

from __future__ import annotations

import json
import logging
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from forms_api.http.params import require_params
from forms_api.logic import repository_forms
from forms_api.logic.clock import to_iso
from forms_api.logic.errors import NotFoundError
from forms_api.logic.form_aggregate import FormAggregate
from forms_api.logic.serializers import form_json
from forms_api.models.form import FormParams

router = APIRouter(prefix="/forms")
logger = logging.getLogger(__name__)


@router.get("", summary="List forms filtered by org and/or creator", operation_id="listForms", tags=["Forms"])
def list_forms(org: Optional[str] = None, creator_id: Optional[str] = None) -> JSONResponse:
    forms = repository_forms.list_forms(org=org, creator_id=creator_id)
    return JSONResponse([form_json(f) for f in forms])


@router.post("", summary="Create a form", operation_id="createForm", tags=["Forms"])
async def create_form(request: Request) -> JSONResponse:
    attrs = await require_params(request, "form", FormParams)
    aggregate = FormAggregate.create(attrs)
    return JSONResponse({"id": aggregate.id}, status_code=201)


@router.get("/{form_id}", summary="Get a form", operation_id="getForm", tags=["Forms"])
def show_form(form_id: str) -> JSONResponse:
    return JSONResponse(FormAggregate.load(form_id).as_json())


@router.put("/{form_id}", include_in_schema=False)
@router.patch("/{form_id}", summary="Update a form", operation_id="updateForm", tags=["Forms"])
async def update_form(form_id: str, request: Request) -> JSONResponse:
    aggregate = FormAggregate.load(form_id)
    attrs = await require_params(request, "form", FormParams)
    aggregate.update(attrs)
    return JSONResponse({"success": True})


@router.delete("/{form_id}", summary="Delete a form and its history", operation_id="deleteForm", tags=["Forms"])
def destroy_form(form_id: str) -> JSONResponse:
    FormAggregate.load(form_id).destroy()
    return JSONResponse({"success": True})


@router.post("/{form_id}/make-live", summary="Publish the current draft", operation_id="makeFormLive", tags=["Forms"])
def make_live(form_id: str) -> JSONResponse:
    aggregate = FormAggregate.load(form_id)
    record = aggregate.make_live()
    return JSONResponse({"success": True, "live_at": to_iso(record.created_at)})


@router.get("/{form_id}/live", summary="Latest published snapshot", operation_id="showLiveForm", tags=["Forms"])
def show_live(form_id: str) -> JSONResponse:
    aggregate = FormAggregate.load(form_id)
    blob = aggregate.live_version
    if blob is None:
        raise NotFoundError("MadeLiveForm", form_id)
    return JSONResponse(json.loads(blob))


@router.get("/{form_id}/draft", summary="Current draft snapshot", operation_id="showDraftForm", tags=["Forms"])
def show_draft(form_id: str) -> JSONResponse:
    return JSONResponse(FormAggregate.load(form_id).snapshot())


__all__ = ["router"]
