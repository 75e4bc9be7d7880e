"""Fixtures wiring the API to in-memory storage."""

import asyncio

import pytest
from fastapi.testclient import TestClient

from usergate.api import AppContext, create_app
from usergate.auth import RefreshFlow, SessionCookieManager, TokenIssuer, TokenVerifier
from usergate.database import ProviderRegistry
from usergate.users import Role, UserService


@pytest.fixture
def context(make_config, storage):
    config = make_config(JWT_SECRET="api-test-secret", CLIENT_URL="http://frontend.test")
    issuer = TokenIssuer(config=config)
    verifier = TokenVerifier(config=config)
    cookies = SessionCookieManager(issuer, config=config)
    users = UserService(storage, config=config)
    return AppContext(
        config=config,
        registry=ProviderRegistry(config=config),
        storage=storage,
        issuer=issuer,
        verifier=verifier,
        cookies=cookies,
        users=users,
        refresh=RefreshFlow(verifier, cookies, users.lookup_principal, config=config),
        connect_on_startup=False,
    )


@pytest.fixture
def client(context):
    with TestClient(create_app(context)) as test_client:
        yield test_client


@pytest.fixture
def alice(context):
    return asyncio.run(context.users.create_user("alice", "alice@example.com", "alice-password"))


@pytest.fixture
def admin(context):
    return asyncio.run(context.users.create_user("root", "root@example.com", "root-password", role=Role.ADMIN))


@pytest.fixture
def bearer(context):
    """Authorization headers carrying a fresh access token for a user record."""

    def _headers(user):
        return {"Authorization": f"Bearer {context.issuer.issue_access(user.principal)}"}

    return _headers
