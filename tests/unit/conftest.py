"""Unit test environment helpers."""

import pytest

from dal.sqlite import SqliteDriver
from tests._support.recording_driver import RecordingDriver

_DB_ENV_VARS = (
    "DB_PROVIDER",
    "DB_HOST",
    "DB_PORT",
    "DB_NAME",
    "DB_USER",
    "DB_PASSWORD",
    "DB_CHARSET",
    "SQLITE_DB_PATH",
    "MIGRATIONS_PATH",
)


@pytest.fixture(autouse=True)
def _minimal_env(monkeypatch):
    """Clear database and tracing env so unit tests never reach real services."""
    for name in _DB_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv("DAL_TRACE_QUERIES", raising=False)
    monkeypatch.delenv("OTEL_EXPORTER_OTLP_ENDPOINT", raising=False)
    yield


@pytest.fixture
def recording_driver():
    """Driver double recording every SQL call."""
    return RecordingDriver()


@pytest.fixture
def sqlite_driver():
    """In-memory SQLite driver closed after the test."""
    driver = SqliteDriver(":memory:")
    yield driver
    driver.close()
