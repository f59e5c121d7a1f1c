"""
Test configuration and fixtures for the URL shortener.
This centralizes all test setup, making individual tests clean.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from main import create_app
from shortlink_app.audit.strategies import InMemoryAuditLog
from shortlink_app.database.connection import build_engine, build_session_factory
from shortlink_app.dependencies import ServiceContainer
from shortlink_app.models.context import ClientContext
from shortlink_app.storage.strategies import InMemoryRecordStore, SQLAlchemyRecordStore


class FakeClock:
    """Controllable time source; call it to read, advance() to move forward"""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def store():
    """Fresh in-memory store for each test"""
    record_store = InMemoryRecordStore()
    yield record_store
    record_store.close()


@pytest.fixture(params=["memory", "sqlalchemy"])
def any_store(request):
    """Runs the test once against every record store backend"""
    if request.param == "memory":
        record_store = InMemoryRecordStore()
    else:
        engine = build_engine("sqlite://")
        record_store = SQLAlchemyRecordStore(engine, build_session_factory(engine))
    yield record_store
    record_store.close()


@pytest.fixture
def audit_log(clock):
    return InMemoryAuditLog(clock=clock)


@pytest.fixture
def container(store, audit_log, clock):
    """Services wired to the in-memory store, audit log and fake clock"""
    services = ServiceContainer(store, audit_log, clock=clock)
    yield services
    services.close()


@pytest.fixture
def context():
    return ClientContext(ip="127.0.0.1", user_agent="pytest-agent")


@pytest.fixture
def client(container):
    """
    Create a test client around an app using the test container.
    This is the main fixture that API tests will use.
    """
    app = create_app(container)
    with TestClient(app) as test_client:
        yield test_client
