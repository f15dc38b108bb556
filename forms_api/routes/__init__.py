"""APIRouter registration for the Forms API."""

from __future__ import annotations

from fastapi import APIRouter

from forms_api.routes.conditions import router as conditions_router
from forms_api.routes.forms import router as forms_router
from forms_api.routes.pages import router as pages_router
from forms_api.routes.versions import router as versions_router

api_router = APIRouter()
api_router.include_router(versions_router)
api_router.include_router(conditions_router)
api_router.include_router(pages_router)
api_router.include_router(forms_router)

__all__ = ["api_router"]
