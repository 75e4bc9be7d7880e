from typing import Any, List, Mapping, Optional

from usergate.core import Config, Usergate, as_int, ifnone
from usergate.database.exceptions import UnsupportedBackendError
from usergate.database.providers.base import DatabaseProvider
from usergate.database.registry import ProviderRegistry, parse_backend_type
from usergate.database.types import BackendConfig, BackendType, ConnectionEvent


def backend_config_from_settings(backend_type: BackendType | str, config: Config) -> BackendConfig:
    """Derive a BackendConfig for ``backend_type`` from the USERGATE config section.

    Raises:
        UnsupportedBackendError: If there is no configuration mapping for the backend type.
    """
    backend_type = parse_backend_type(backend_type)
    settings = config.USERGATE
    if backend_type == BackendType.MONGODB:
        return BackendConfig(
            uri=settings.MONGODB_URI,
            user=settings.get("MONGODB_USER") or None,
            password=config.get_secret("USERGATE", "MONGODB_PASS") or None,
            options={
                "serverSelectionTimeoutMS": as_int(settings.get("MONGODB_SERVER_SELECTION_TIMEOUT_MS"), 5000),
            },
        )
    raise UnsupportedBackendError(f"Configuration for {backend_type.value} not yet implemented")


class StorageService(Usergate):
    """Storage facade used by business logic.

    Resolves a BackendConfig (explicit, or derived from configuration), obtains the backend's provider from the
    registry and delegates to it. Failures are logged with backend and operation context, annotated with the same
    context (``add_note``) and re-raised unchanged.

    The service never connects on its own before a query; callers that want lazy connection use
    :meth:`ensure_connected` first.

    Args:
        backend_type: Backend to use. Defaults to ``USERGATE__DATABASE_TYPE``.
        backend_config: Explicit connection settings. Derived from configuration when omitted.
        registry: Registry holding the live providers. A private registry is created when omitted.

    Example:
        .. code-block:: python

            registry = ProviderRegistry()
            storage = StorageService("mongodb", registry=registry)
            await storage.connect()
            await storage.execute_raw_query({"ping": 1})
            await registry.close_all()
    """

    def __init__(
        self,
        backend_type: BackendType | str | None = None,
        backend_config: Optional[BackendConfig] = None,
        *,
        registry: Optional[ProviderRegistry] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.backend_type = parse_backend_type(ifnone(backend_type, self.config.USERGATE.DATABASE_TYPE))
        self.backend_config = (
            backend_config if backend_config is not None else backend_config_from_settings(self.backend_type, self.config)
        )
        self.registry = registry if registry is not None else ProviderRegistry(config=self.config)
        self.provider: DatabaseProvider = self.registry.create_provider(self.backend_type, self.backend_config)
        self.logger.info(f"Database service initialized with {self.backend_type.value} provider")

    async def connect(self) -> None:
        try:
            await self.provider.connect()
        except Exception as e:
            self._annotate_and_log(e, "connect", f"Failed to connect to {self.backend_type.value} database")
            raise
        self.logger.info(f"Connected to {self.backend_type.value} database")

    async def disconnect(self) -> None:
        try:
            await self.provider.disconnect()
        except Exception as e:
            self._annotate_and_log(e, "disconnect", f"Error disconnecting from {self.backend_type.value} database")
            raise
        self.logger.info(f"Disconnected from {self.backend_type.value} database")

    def is_connected(self) -> bool:
        return self.provider.is_connected()

    async def ensure_connected(self) -> None:
        """Connect if the provider is not currently connected."""
        if not self.provider.is_connected():
            await self.connect()

    async def execute_raw_query(self, query: Any, params: Optional[Mapping[str, Any]] = None) -> Any:
        try:
            return await self.provider.execute_raw_query(query, params)
        except Exception as e:
            self._annotate_and_log(e, "execute_raw_query", f"Error executing raw query on {self.backend_type.value}")
            raise

    def connection_events(self) -> List[ConnectionEvent]:
        return self.provider.get_connection_events()

    def _annotate_and_log(self, error: Exception, operation: str, message: str) -> None:
        error.add_note(f"backend={self.backend_type.value} operation={operation}")
        self.logger.error(f"{message}: {error}")
