"""Shared test fixtures: in-memory database, canned upstream feed, API client."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from shipradar.api.routes import get_feed
from shipradar.database import get_db
from shipradar.main import app, limiter
from shipradar.models import Base
from shipradar.modules.tracked_vessels import TrackedVesselFeed

SAMPLE_TRACKED_VESSELS = [
    {
        "AIS": {"IMO": 9312345, "NAME": "NORDIC STAR", "ETA": "2024-05-01T08:00:00Z", "DESTINATION": "ROTTERDAM"},
        "GeofenceStatus": "Outside",
        "GeofenceType": "Anchorage",
        "CaseId": "C-101",
    },
    {
        "AIS": {"IMO": "9074729", "NAME": "M/V EXAMPLE", "DESTINATION": "SINGAPORE"},
        "GeofenceStatus": "Inside",
        "GeofenceType": "Berth",
        "Agent": "A-7",
        "AgentName": "Harbour Agency",
    },
    {
        "GeofenceType": "Unmapped",
    },
    {
        "AIS": {"IMO": "9155555", "NAME": "BLUE TERN"},
        "GeofenceType": "Terminal",
        "Info1": "Bunkering",
    },
]


def make_feed(handler, **kwargs) -> TrackedVesselFeed:
    """Feed backed by an httpx.MockTransport calling ``handler(request)``."""
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return TrackedVesselFeed(base_url="http://tracker.test", client=client, **kwargs)


def json_handler(payload, status_code=200):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json=payload)
    return handler


@pytest.fixture
def db():
    """In-memory SQLite session with all tables, shareable across threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragmas(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(bind=engine, autoflush=False)
    session = Session()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def tracked_payload():
    return [dict(v) for v in SAMPLE_TRACKED_VESSELS]


@pytest.fixture
def api_client(db, tracked_payload):
    """TestClient with the DB session and upstream feed overridden."""
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_feed] = lambda: make_feed(json_handler(tracked_payload))
    limiter.reset()
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def feed_factory():
    """Build a feed whose HTTP calls go to ``handler(request)`` via httpx.MockTransport."""
    def _make(handler, **kwargs) -> TrackedVesselFeed:
        return make_feed(handler, **kwargs)
    return _make
