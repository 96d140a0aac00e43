import fakeredis
import pytest
from fastapi.testclient import TestClient

from stockbroker.core.config import settings
from stockbroker.main import app, get_store
from stockbroker.services.sessions import SessionManager
from stockbroker.services.simulator import PriceSimulator
from stockbroker.store import KeyValueStore


@pytest.fixture
def server():
    return fakeredis.FakeServer()


@pytest.fixture
def raw(server):
    """Synchronous view of the same fake Redis, for inspecting stored records."""
    return fakeredis.FakeRedis(server=server, decode_responses=True)


@pytest.fixture
def store(server):
    return KeyValueStore(fakeredis.FakeAsyncRedis(server=server, decode_responses=True))


@pytest.fixture
def simulator():
    return PriceSimulator(settings.initial_prices, seed=7)


@pytest.fixture
def sessions(simulator):
    return SessionManager(simulator, history_size=settings.history_size)


@pytest.fixture
def client(server, monkeypatch):
    # Ticks are driven by hand in tests
    monkeypatch.setattr(settings, "tick_interval", 3600.0)

    async def _store():
        return KeyValueStore(fakeredis.FakeAsyncRedis(server=server, decode_responses=True))

    app.dependency_overrides[get_store] = _store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def login(client):
    """Register (if needed) and log in; returns the session header."""

    def _login(email="a@b.com", password="secret1"):
        client.post("/auth/register", json={"email": email, "password": password})
        resp = client.post("/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        return {"X-Session-Token": resp.json()["token"]}

    return _login
