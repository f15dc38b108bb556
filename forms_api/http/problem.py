"""Global exception handlers.

Domain errors map to the JSON bodies API clients already rely on:
``{"error": "not_found"}`` (404), ``{"error": "<message>"}`` for missing
parameters (400) and an attribute error map for validation failures (400).
Unexpected failures are logged and answered with an RFC7807 problem body.
"""

from __future__ import annotations

import logging
from typing import Dict, List

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from forms_api.logic.errors import MissingParameterError, NotFoundError, RecordInvalid

PROBLEM_MEDIA_TYPE = "application/problem+json"

logger = logging.getLogger(__name__)


async def handle_not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    logger.info("not_found path=%s resource=%s id=%s", request.url.path, exc.resource, exc.identifier)
    return JSONResponse({"error": "not_found"}, status_code=404)


async def handle_missing_parameter(request: Request, exc: MissingParameterError) -> JSONResponse:
    logger.info("missing_parameter path=%s param=%s", request.url.path, exc.param)
    return JSONResponse({"error": str(exc)}, status_code=400)


async def handle_record_invalid(request: Request, exc: RecordInvalid) -> JSONResponse:
    logger.info("record_invalid path=%s fields=%s", request.url.path, sorted(exc.errors))
    return JSONResponse(exc.errors, status_code=400)


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Turn body/query type errors into the same attribute error map as RecordInvalid."""
    errors: Dict[str, List[str]] = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        key = loc[-1] if loc else "base"
        errors.setdefault(key, []).append(str(err.get("msg", "is invalid")))
    logger.info("request_validation_error path=%s fields=%s", request.url.path, sorted(errors))
    return JSONResponse(errors, status_code=400)


async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
    if isinstance(exc.detail, dict):
        body = exc.detail
    else:
        body = {"title": "Error", "status": int(exc.status_code), "detail": str(exc.detail or "")}
    return JSONResponse(
        body,
        status_code=int(exc.status_code),
        media_type=PROBLEM_MEDIA_TYPE,
        headers=getattr(exc, "headers", None),
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("unexpected_error path=%s", request.url.path, exc_info=exc)
    return JSONResponse(
        {"title": "Internal Server Error", "status": 500},
        status_code=500,
        media_type=PROBLEM_MEDIA_TYPE,
    )


__all__ = [
    "PROBLEM_MEDIA_TYPE",
    "handle_not_found",
    "handle_missing_parameter",
    "handle_record_invalid",
    "handle_request_validation_error",
    "handle_http_exception",
    "handle_unexpected_error",
]
