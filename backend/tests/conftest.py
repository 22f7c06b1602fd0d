"""Shared test fixtures for CodingFlow backend tests."""

import os
import sys
import time

import pytest

# Ensure backend is on the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SQLITE_WAL", "false")

from codingflow.db.database import create_db_and_tables, make_engine
from codingflow.store.entity_store import EntityStore
from codingflow.workspace import Workspace


@pytest.fixture
def engine():
    """Fresh in-memory SQLite database with every table created."""
    engine = make_engine("sqlite://")
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine):
    return EntityStore(engine)


@pytest.fixture
def ws(engine):
    """Workspace (store + services + engines) over the in-memory database."""
    return Workspace(engine)


@pytest.fixture
def project(ws):
    """A project without the default labels."""
    return ws.projects.create_project("CodingFlow", with_default_labels=False)


@pytest.fixture
def new_york_tz(monkeypatch):
    """Local time set to America/New_York (DST began 2026-03-08 02:00)."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset() is not available on this platform")
    monkeypatch.setenv("TZ", "America/New_York")
    time.tzset()
    if "EST" not in time.tzname:
        monkeypatch.undo()
        time.tzset()
        pytest.skip("America/New_York zone data is not installed")
    yield
    monkeypatch.undo()
    time.tzset()
