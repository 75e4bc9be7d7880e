from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from usergate.auth import RefreshFlow, SessionCookieManager, TokenIssuer, TokenVerifier
from usergate.core import Config, get_usergate_config
from usergate.database import ProviderRegistry, StorageService
from usergate.users import UserService


@dataclass
class AppContext:
    """Everything a request handler needs, constructed once per application.

    Build one with :meth:`from_config`, or assemble the parts by hand to substitute any of them.
    """

    config: Config
    registry: ProviderRegistry
    storage: StorageService
    issuer: TokenIssuer
    verifier: TokenVerifier
    cookies: SessionCookieManager
    users: UserService
    refresh: RefreshFlow
    connect_on_startup: bool = True

    @classmethod
    def from_config(cls, config: Optional[Config] = None) -> "AppContext":
        config = config if config is not None else get_usergate_config()
        registry = ProviderRegistry(config=config)
        storage = StorageService(registry=registry, config=config)
        issuer = TokenIssuer(config=config)
        verifier = TokenVerifier(config=config)
        cookies = SessionCookieManager(issuer, config=config)
        users = UserService(storage, config=config)
        return cls(
            config=config,
            registry=registry,
            storage=storage,
            issuer=issuer,
            verifier=verifier,
            cookies=cookies,
            users=users,
            refresh=RefreshFlow(verifier, cookies, users.lookup_principal, config=config),
        )


def get_context(request: Request) -> AppContext:
    """FastAPI dependency returning the application's :class:`AppContext`."""
    return request.app.state.context
