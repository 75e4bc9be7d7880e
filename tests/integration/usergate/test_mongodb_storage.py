"""End-to-end tests against a real MongoDB. Skipped when none is reachable."""

import pytest

from usergate.database import BackendConfig, ConnectionEventKind, ProviderRegistry, StorageService
from usergate.users import UserService

pytestmark = pytest.mark.integration


@pytest.mark.asyncio
async def test_storage_round_trip(mongo_uri):
    registry = ProviderRegistry()
    storage = StorageService("mongodb", BackendConfig(uri=mongo_uri), registry=registry)

    await storage.connect()
    try:
        assert storage.is_connected()
        assert (await storage.execute_raw_query('{"ping": 1}'))["ok"] == 1.0
    finally:
        await registry.close_all()

    assert not storage.is_connected()
    kinds = [event.kind for event in storage.connection_events()]
    assert kinds == [ConnectionEventKind.CONNECTED, ConnectionEventKind.DISCONNECTED]


@pytest.mark.asyncio
async def test_user_service_against_mongodb(mongo_uri):
    registry = ProviderRegistry()
    storage = StorageService("mongodb", BackendConfig(uri=mongo_uri), registry=registry)
    users = UserService(storage)

    try:
        created = await users.create_user("alice", "alice@example.com", "alice-password")
        assert (await users.authenticate_user("alice", "alice-password")).id == created.id

        updated = await users.update_user(created.id, {"theme": "dark"})
        assert updated.theme.value == "dark"

        assert [u.username for u in await users.list_users()] == ["alice"]
        assert await users.delete_user(created.id) is True
        assert await users.find_user_by_id(created.id) is None
    finally:
        await registry.close_all()
