"""Shared fixtures: an in-memory ledger database and an API client."""

import pytest
from fastapi.testclient import TestClient

from betledger.config import Settings
from betledger.models import Database


@pytest.fixture
def database():
    db = Database("sqlite://")
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def session(database):
    s = database.session()
    yield s
    s.close()


@pytest.fixture
def client(monkeypatch):
    from betledger.main import app

    monkeypatch.setattr(app.state, "settings", Settings(database_url="sqlite://", scheduler_enabled=False))

    with TestClient(app) as c:
        yield c


@pytest.fixture
def bookmaker(client):
    r = client.post("/api/bookmakers", json={
        "name": "Exchange", "type": "exchange", "commission": 5, "initial_balance": 100,
    })
    assert r.status_code == 201
    return r.json()
