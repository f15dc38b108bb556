from __future__ import annotations

import logging
import os
from typing import Callable

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError

from forms_api.config import get_config
from forms_api.db.base import get_engine
from forms_api.db.migrations_runner import apply_migrations
from forms_api.http.problem import (
    handle_http_exception,
    handle_missing_parameter,
    handle_not_found,
    handle_record_invalid,
    handle_request_validation_error,
    handle_unexpected_error,
)
from forms_api.http.request_id import RequestIdMiddleware, WhodunnitMiddleware
from forms_api.logging_setup import configure_logging
from forms_api.logic import audit_log
from forms_api.logic.errors import MissingParameterError, NotFoundError, RecordInvalid
from forms_api.middleware.cors import apply_cors
from forms_api.routes import api_router

logger = logging.getLogger(__name__)

REQUIRED_TABLES = ("forms", "pages", "routing_conditions", "made_live_forms", "versions")


def _health_check() -> Callable[[], dict]:
    def check() -> dict:
        try:
            with get_engine().connect() as conn:
                conn.execute(text("SELECT 1"))
            return {"status": "ok", "db": True}
        except SQLAlchemyError as e:
            logger.error("Health DB check failed", exc_info=True)
            return {"status": "degraded", "db": False, "reason": str(e)}

    return check


def _schema_ready(engine) -> bool:  # type: ignore[no-untyped-def]
    inspector = inspect(engine)
    return all(inspector.has_table(name) for name in REQUIRED_TABLES)


def create_app() -> FastAPI:
    # Configure global logging before app instantiation so all modules emit
    configure_logging()
    config = get_config()
    app = FastAPI(title="Forms API")

    app.add_exception_handler(NotFoundError, handle_not_found)
    app.add_exception_handler(MissingParameterError, handle_missing_parameter)
    app.add_exception_handler(RecordInvalid, handle_record_invalid)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.add_middleware(WhodunnitMiddleware)
    app.add_middleware(RequestIdMiddleware)
    apply_cors(app, origins=config.cors.origins)

    # Version rows are written by an event subscriber, not by the routes
    audit_log.install()

    # Apply migrations on startup (guarded) to avoid import-time side effects
    @app.on_event("startup")
    def _apply_migrations() -> None:
        enable_flag = os.getenv("AUTO_APPLY_MIGRATIONS", "").strip().lower() in {"1", "true", "yes", "on"}
        try:
            engine = get_engine()
        except Exception:
            logger.error("Failed to build DB engine before migrations", exc_info=True)
            raise
        if _schema_ready(engine):
            logger.info("DB schema appears ready; skipping migrations at startup")
            return
        if not enable_flag:
            logger.warning("DB schema incomplete and AUTO_APPLY_MIGRATIONS disabled; skipping migrations")
            return
        try:
            # Missing tables mean any journal on disk describes another database
            apply_migrations(engine, force=True)
        except Exception:
            logger.error("Failed to apply migrations at startup", exc_info=True)
            raise

    app.include_router(api_router, prefix="/api/v1")

    health_check = _health_check()

    @app.get("/health")
    def health():  # pragma: no cover - trivial
        return health_check()

    return app


# Intentionally do not instantiate the app at import time to prevent side effects.
