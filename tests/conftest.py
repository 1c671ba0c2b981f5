"""Test configuration and fixtures."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from multiprotocol_api.config import ServerSettings
from multiprotocol_api.rooms.broadcast import Connection
from multiprotocol_api.server.app import create_app
from multiprotocol_api.store import InMemoryTaskStore

_ENV_VARS = (
    "LOG_LEVEL",
    "MULTIPROTOCOL_API_VERSION",
    "MULTIPROTOCOL_CORS_ORIGINS",
    "MULTIPROTOCOL_TASK_STORE_PATH",
    "MULTIPROTOCOL_OPERATION_TIMEOUT_SECONDS",
    "MULTIPROTOCOL_BROADCAST_SEND_TIMEOUT_SECONDS",
    "MULTIPROTOCOL_DEFAULT_ROOM",
    "MULTIPROTOCOL_HOST",
    "MULTIPROTOCOL_PORT",
)


class FakeConnection(Connection):
    """In-memory connection that records frames it was sent."""

    def __init__(self, name: str, *, fail: bool = False) -> None:
        super().__init__(connection_id=name)
        self.fail = fail
        self.opened = False
        self.sent: list[str] = []
        self.closed: tuple[int, str] | None = None

    async def open(self) -> None:
        self.opened = True

    async def send_text(self, data: str) -> None:
        if self.fail:
            raise ConnectionResetError(f"{self.id} is gone")
        self.sent.append(data)

    async def close(self, code: int = 1000, reason: str = "") -> None:
        self.closed = (code, reason)


@pytest.fixture(autouse=True)
def clean_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Isolate settings from the developer's shell and any local `.env`."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def settings() -> ServerSettings:
    """Provide default server settings."""
    return ServerSettings()


@pytest.fixture
def store() -> InMemoryTaskStore:
    return InMemoryTaskStore()


@pytest.fixture
def app(settings: ServerSettings, store: InMemoryTaskStore) -> FastAPI:
    return create_app(settings, store=store)


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    # Entering the client keeps one event loop for every request and socket.
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def fake_connection() -> type[FakeConnection]:
    """Provide the FakeConnection class for room and broadcast tests."""
    return FakeConnection
