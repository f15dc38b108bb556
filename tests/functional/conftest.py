from __future__ import annotations

"""Functional test bootstrap.

Points the application at a file-backed SQLite database under ``tmp/``,
applies the SQL migrations once per session and empties every table before
each test so tests never observe each other's rows.
"""

import os
import pathlib

import pytest

_ROOT = pathlib.Path(__file__).resolve().parents[2]
_DB_FILE = _ROOT / "tmp" / "functional_tests.db"
_JOURNAL = _ROOT / "tmp" / "functional_tests_journal.json"
_DB_FILE.parent.mkdir(parents=True, exist_ok=True)
for _stale in (_DB_FILE, _JOURNAL):
    if _stale.exists():
        _stale.unlink()

# Use a file-backed SQLite DB to ensure persistence across connections
os.environ["TEST_DATABASE_URL"] = f"sqlite:///{_DB_FILE}"
# Migrations are applied explicitly below, not at app startup
os.environ["AUTO_APPLY_MIGRATIONS"] = "0"
os.environ.pop("ACCEPT_LEGACY_ANSWER_TYPES", None)
os.environ.pop("AUDIT_ITEM_TYPES", None)

_TABLES = ("versions", "routing_conditions", "made_live_forms", "pages", "forms")


@pytest.fixture(scope="session", autouse=True)
def functional_sqlite_bootstrap() -> None:
    """Session-level bootstrap: apply migrations once for the shared DB."""
    from forms_api.config import get_config
    from forms_api.db.base import get_engine
    from forms_api.db.migrations_runner import apply_migrations
    from forms_api.logic import audit_log

    get_config.cache_clear()
    apply_migrations(get_engine(os.environ["TEST_DATABASE_URL"]), journal_path=_JOURNAL)
    audit_log.install()
    yield
    audit_log.uninstall()


@pytest.fixture(autouse=True)
def clean_database() -> None:
    from sqlalchemy import text

    from forms_api.config import get_config
    from forms_api.db.base import transaction

    with transaction() as conn:
        for table in _TABLES:
            conn.execute(text(f"DELETE FROM {table}"))
    yield
    get_config.cache_clear()


@pytest.fixture
def app():
    from forms_api.main import create_app

    application = create_app()
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient

    return TestClient(app)


@pytest.fixture
def legacy_client(app):
    """Client for an app with legacy answer-type translation switched on."""
    from fastapi.testclient import TestClient

    from forms_api.config import FeaturesConfig, get_features

    app.dependency_overrides[get_features] = lambda: FeaturesConfig(accept_legacy_answer_types=True)
    return TestClient(app)


@pytest.fixture
def make_form():
    """Create a form through the aggregate and return it."""
    from forms_api.logic.form_aggregate import FormAggregate

    def _make(**attrs):
        values = {"name": "Apply for a license to test forms", "org": "test-org", "creator_id": "123"}
        values.update(attrs)
        return FormAggregate.create(values)

    return _make


@pytest.fixture
def page_attrs():
    def _attrs(**overrides):
        values = {
            "question_text": "What is your work address?",
            "hint_text": "This should be the location stated in your contract.",
            "answer_type": "number",
            "is_optional": False,
        }
        values.update(overrides)
        return values

    return _attrs


@pytest.fixture
def published_events():
    """Collect every domain event published while the test runs."""
    from forms_api.logic import events

    collected = []

    def _collect(event_type, payload):
        collected.append({"type": event_type, "payload": payload})

    events.subscribe(_collect)
    yield collected
    events.unsubscribe(_collect)
