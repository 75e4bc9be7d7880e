"""Pytest fixtures for storage-layer unit tests."""

from typing import Any, Mapping, Optional
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from usergate.database import BackendConfig, ConnectionEventKind, ConnectionState, DatabaseProvider
from usergate.database.types import BackendType


class FakeProvider(DatabaseProvider):
    """In-memory provider recording the calls made to it."""

    backend_type = BackendType.MONGODB

    def __init__(self, backend_config: BackendConfig, **kwargs):
        super().__init__(backend_config, **kwargs)
        self.connect_calls = 0
        self.disconnect_calls = 0
        self.queries = []
        self.disconnect_error: Optional[BaseException] = None
        self.connect_error: Optional[BaseException] = None

    async def connect(self) -> None:
        self.connect_calls += 1
        if self.connect_error is not None:
            raise self.connect_error
        self._state = ConnectionState.READY
        self._record_event(ConnectionEventKind.CONNECTED, "fake connected")

    async def disconnect(self) -> None:
        self.disconnect_calls += 1
        if self.disconnect_error is not None:
            raise self.disconnect_error
        self._state = ConnectionState.DISCONNECTED
        self._record_event(ConnectionEventKind.DISCONNECTED, "fake disconnected")

    def is_connected(self) -> bool:
        return self._state == ConnectionState.READY

    def get_connection(self) -> Any:
        return self

    async def execute_raw_query(self, query: Any, params: Optional[Mapping[str, Any]] = None) -> Any:
        self.queries.append((query, params))
        return {"ok": 1.0, "echo": query}


@pytest.fixture
def backend_config():
    return BackendConfig(uri="mongodb://localhost:27017/usergate_test")


@pytest.fixture
def fake_provider_classes():
    return {BackendType.MONGODB: FakeProvider, BackendType.POSTGRES: FakeProvider}


@pytest.fixture
def mock_database():
    database = MagicMock()
    database.command = AsyncMock(return_value={"ok": 1.0})
    return database


@pytest.fixture
def mock_motor_client(mock_database):
    """Create a mock AsyncIOMotorClient whose ping succeeds."""
    client = MagicMock()
    client.admin.command = AsyncMock(return_value={"ok": 1.0})
    client.get_default_database = MagicMock(return_value=mock_database)
    client.__getitem__ = MagicMock(return_value=mock_database)
    client.close = MagicMock()
    return client


@pytest.fixture
def patched_motor(mock_motor_client):
    with patch("usergate.database.providers.mongodb.AsyncIOMotorClient", return_value=mock_motor_client) as ctor:
        yield ctor


@pytest.fixture
def fake_provider_cls():
    return FakeProvider
