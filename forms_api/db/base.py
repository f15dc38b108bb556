"""SQLAlchemy engine and transaction helpers.

The service targets PostgreSQL in production but supports SQLite for local
development and CI. No declarative models are defined here; this module only
manages connection lifecycle. Repositories use SQLAlchemy Core text queries.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.pool import StaticPool

from forms_api.config import get_config

logger = logging.getLogger(__name__)


def _db_url() -> str:
    return get_config().database.dsn


# Module-level cached Engine to ensure a single shared connection/engine
_ENGINE: Engine | None = None
_ENGINE_URL: str | None = None


def get_engine(url: str | None = None) -> Engine:
    """Return a singleton SQLAlchemy Engine for the given URL.

    Reuses a module-level Engine so repositories share the same connection
    pool. For SQLite in-memory URLs, use a StaticPool to keep a single
    connection alive across threads during tests.
    """
    global _ENGINE, _ENGINE_URL
    resolved_url = url or _db_url()

    if _ENGINE is None or _ENGINE_URL != resolved_url:
        kwargs: dict = {"future": True, "pool_pre_ping": True}
        if resolved_url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in resolved_url:
                kwargs["poolclass"] = StaticPool
        if _ENGINE is not None:
            _ENGINE.dispose()
        _ENGINE = create_engine(resolved_url, **kwargs)
        _ENGINE_URL = resolved_url
        logger.info("db_engine_created dialect=%s", _ENGINE.dialect.name)

    return _ENGINE


@contextmanager
def transaction(conn: Connection | None = None) -> Iterator[Connection]:
    """Yield a connection inside a transaction.

    When ``conn`` is given the caller already owns a transaction and this is a
    pass-through; otherwise a new ``engine.begin()`` block commits on success
    and rolls back on error.
    """
    if conn is not None:
        yield conn
        return
    try:
        with get_engine().begin() as new_conn:
            yield new_conn
    except Exception:
        logger.error("DB transaction error; rolled back", exc_info=True)
        raise


@contextmanager
def reader(conn: Connection | None = None) -> Iterator[Connection]:
    """Yield a connection for reads, reusing ``conn`` when provided."""
    if conn is not None:
        yield conn
        return
    with get_engine().connect() as new_conn:
        yield new_conn
