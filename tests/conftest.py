"""Shared fixtures for site scheduler tests."""

import uuid
from datetime import datetime, timezone

import pytest

from site_scheduler.logging.context import clear_log_context
from site_scheduler.persistence import close_database, get_session, init_database
from site_scheduler.persistence.schema import HttpAlertSinkModel, SourceModel


@pytest.fixture
def database(tmp_path):
    """Initialize a file-backed SQLite database for one test."""
    db_url = f"sqlite:///{tmp_path / 'site_scheduler_test.db'}"
    init_database(db_url)
    yield db_url
    close_database()


def insert_source(name: str = "checkout-flow") -> str:
    """Insert a source row and return its id."""
    source_id = str(uuid.uuid4())
    with get_session() as session:
        session.add(
            SourceModel(
                id=source_id,
                name=name,
                value="await page.goto('https://shop.example.com')",
                created_at=datetime.now(timezone.utc),
            )
        )
    return source_id


def insert_alert_sink(name: str = "pager-webhook") -> str:
    """Insert an HTTP alert sink row and return its id."""
    sink_id = str(uuid.uuid4())
    with get_session() as session:
        session.add(
            HttpAlertSinkModel(
                id=sink_id,
                name=name,
                uri="https://alerts.example.com/hook",
                method="POST",
                created_at=datetime.now(timezone.utc),
            )
        )
    return sink_id


@pytest.fixture
def make_source(database):
    """Factory inserting additional sources."""
    return insert_source


@pytest.fixture
def source_id(database):
    """Id of a source that sites can reference."""
    return insert_source()


@pytest.fixture
def make_alert_sink(database):
    """Factory inserting HTTP alert sinks."""
    return insert_alert_sink


@pytest.fixture(autouse=True)
def clean_log_context():
    """Reset logging context around every test."""
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
def clean_env(monkeypatch):
    """Remove environment variables that override configuration."""
    for var in ("DATABASE_URL", "LOG_LEVEL", "LOG_FORMAT", "ENVIRONMENT"):
        monkeypatch.delenv(var, raising=False)
