"""FastAPI application package for the Forms API.

Exposes the application factory. Business logic lives in
`forms_api/logic/` and route handlers in `forms_api/routes/`.
"""

from __future__ import annotations

from forms_api.main import create_app

__all__ = ["create_app"]
