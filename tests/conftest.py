# tests/conftest.py
import asyncio

import pytest
from fastapi.testclient import TestClient

from core.auth import AuthStore
from core.config import AccessorDelays
from core.errors import AccessorError
from core.sheets import MockSheetsAccessor, mock_rows_for


class RecordingAccessor:
    """Accessor double: serves fixed rows and records every update payload."""

    def __init__(self, rows=None, *, fetch_error=None, update_result=True, update_error=None):
        self.rows = rows
        self.fetch_error = fetch_error
        self.update_result = update_result
        self.update_error = update_error
        self.fetch_calls = []
        self.updates = []

    async def fetch_records(self, config):
        self.fetch_calls.append(config)
        if self.fetch_error is not None:
            raise self.fetch_error
        if self.rows is None:
            return mock_rows_for(config.range)
        return [dict(r) for r in self.rows]

    async def update_record(self, config, payload):
        self.updates.append(payload)
        if self.update_error is not None:
            raise self.update_error
        return self.update_result


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def accessor():
    return RecordingAccessor()


@pytest.fixture
def failing_accessor():
    return RecordingAccessor(fetch_error=AccessorError("sheet unavailable"), update_error=AccessorError("sheet unavailable"))


@pytest.fixture
def auth_store(tmp_path):
    return AuthStore(tmp_path / "auth_state.json")


@pytest.fixture
def client(auth_store):
    import api.main as api_main

    api_main.reset_state(auth_store=auth_store, accessor=MockSheetsAccessor(AccessorDelays(fetch=0.0, update=0.0)))
    return TestClient(api_main.app)


@pytest.fixture
def logged_in(client):
    resp = client.post("/auth/login", json={"password": "cbe425"})
    assert resp.status_code == 200
    return client
