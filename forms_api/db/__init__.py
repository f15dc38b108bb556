"""Database bootstrap utilities for the Forms API.

This module exposes convenience imports for engine construction, transaction
helpers and the migrations runner that applies SQL files from the project
migrations/ directory. The DB layer is intentionally minimal and does not leak
ORM models into route handlers.
"""

from forms_api.db.base import get_engine, reader, transaction
from forms_api.db.migrations_runner import apply_migrations

__all__ = [
    "get_engine",
    "reader",
    "transaction",
    "apply_migrations",
]
