"""
Pytest configuration and fixtures.
"""

from datetime import datetime

import mongomock
import pytest

from visit_analytics.app import create_app
from visit_analytics.geo import GeoInfo
from visit_analytics.store import VisitStore

NOW = datetime(2024, 5, 10, 12, 0, 0)
DASH_TOKEN = "s3cret-dashboard-token"
ALLOWED_ORIGIN = "https://sessions.example"

IPAD_UA = (
    "Mozilla/5.0 (iPad; CPU OS 16_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/16.0 Mobile/15E148 Safari/604.1"
)


class StubGeo:
    """Geo lookup that answers from memory and remembers what it was asked."""

    def __init__(self, info=GeoInfo("Germany", "Berlin")):
        self.info = info
        self.calls = []

    async def lookup(self, ip):
        self.calls.append(ip)
        return self.info


class RecordingBroadcaster:
    def __init__(self):
        self.events = []

    def emit(self, event, data):
        self.events.append((event, data))


@pytest.fixture
def collection():
    """Fresh in-memory analytics collection."""
    return mongomock.MongoClient().sessions.analytics


@pytest.fixture
def store(collection):
    return VisitStore(collection)


@pytest.fixture
def geo():
    return StubGeo()


@pytest.fixture
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture
def app(store, geo, broadcaster):
    """Create test Flask application."""
    test_config = {
        "TESTING": True,
        "DASH_TOKEN": DASH_TOKEN,
        "CORS_ALLOW_ORIGINS": [ALLOWED_ORIGIN],
    }
    return create_app(test_config, store=store, geo=geo, broadcaster=broadcaster, clock=lambda: NOW)


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


def visit(path="/", timestamp=NOW, **fields):
    """Minimal stored visit document."""
    doc = {"path": path, "timestamp": timestamp}
    doc.update(fields)
    return doc
