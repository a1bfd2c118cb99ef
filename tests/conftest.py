from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from looom import database, main
from looom.storage import MemoryStorage
from looom.store import Store

T0 = datetime(2025, 3, 1, 10, 0, tzinfo=timezone.utc)


class Clock:
    def __init__(self, now=T0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture(autouse=True)
def demo_mode():
    database.configure(None, None)
    yield
    database.configure(None, None)


@pytest.fixture
def live_db(tmp_path):
    database.configure(f"sqlite:///{tmp_path / 'looom.db'}", "test-key")
    database.init_db()
    yield database.get_engine()


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def store(storage, clock):
    s = Store(storage, clock=clock)
    s.initialize_app()
    return s


@pytest.fixture
def client(store, monkeypatch):
    monkeypatch.setattr(main, "store", store)
    with TestClient(main.app) as c:
        yield c


@pytest.fixture
def admin_headers(client):
    r = client.post("/api/admin/login", data={"username": "admin@looom.shop", "password": "admin123"})
    assert r.status_code == 200
    return {"Authorization": f"Bearer {r.json()['access_token']}"}
