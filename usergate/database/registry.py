import asyncio
import threading
from typing import Dict, Optional, Type

from usergate.core import Usergate
from usergate.database.exceptions import BackendNotImplementedError, ProviderShutdownError, UnsupportedBackendError
from usergate.database.providers.base import DatabaseProvider
from usergate.database.providers.mongodb import MongoDBProvider
from usergate.database.types import BackendConfig, BackendType


def parse_backend_type(backend_type: BackendType | str) -> BackendType:
    """Normalize a backend-type identifier.

    Raises:
        UnsupportedBackendError: If the identifier names no known backend.
    """
    if isinstance(backend_type, BackendType):
        return backend_type
    try:
        return BackendType(str(backend_type).lower())
    except ValueError:
        raise UnsupportedBackendError(f"Unsupported database type: {backend_type}") from None


class ProviderRegistry(Usergate):
    """Holds at most one live provider per backend type.

    ``create_provider`` is create-if-absent: the first call for a backend type constructs and caches the provider,
    every later call returns that same instance and ignores its ``config`` argument (first writer wins). The
    create-if-absent step runs under a lock; provider constructors do no I/O, so the lock is never held while
    connecting or querying.

    Backend types without a provider class are recognized but unbuilt and raise ``BackendNotImplementedError``. New
    provider classes can be plugged in with :meth:`register_provider_class`.

    Example:
        .. code-block:: python

            registry = ProviderRegistry()
            provider = registry.create_provider("mongodb", BackendConfig(uri="mongodb://localhost:27017/test"))
            await provider.connect()
            ...
            await registry.close_all()
    """

    default_provider_classes: Dict[BackendType, Type[DatabaseProvider]] = {
        BackendType.MONGODB: MongoDBProvider,
    }

    def __init__(self, provider_classes: Optional[Dict[BackendType, Type[DatabaseProvider]]] = None, **kwargs):
        super().__init__(**kwargs)
        self._provider_classes: Dict[BackendType, Type[DatabaseProvider]] = dict(
            provider_classes if provider_classes is not None else self.default_provider_classes
        )
        self._providers: Dict[BackendType, DatabaseProvider] = {}
        self._lock = threading.Lock()

    def register_provider_class(self, backend_type: BackendType | str, provider_cls: Type[DatabaseProvider]) -> None:
        """Make ``provider_cls`` the provider built for ``backend_type`` from now on."""
        backend_type = parse_backend_type(backend_type)
        with self._lock:
            self._provider_classes[backend_type] = provider_cls

    def create_provider(self, backend_type: BackendType | str, config: BackendConfig) -> DatabaseProvider:
        """Return the cached provider for ``backend_type``, constructing it on first request.

        Raises:
            UnsupportedBackendError: For unknown backend types.
            BackendNotImplementedError: For recognized backend types without a provider class.
        """
        backend_type = parse_backend_type(backend_type)
        with self._lock:
            existing = self._providers.get(backend_type)
            if existing is not None:
                if existing.backend_config != config:
                    self.logger.warning(
                        f"Reusing existing {backend_type.value} database provider; ignoring differing config"
                    )
                else:
                    self.logger.info(f"Reusing existing {backend_type.value} database provider")
                return existing

            provider_cls = self._provider_classes.get(backend_type)
            if provider_cls is None:
                raise BackendNotImplementedError(f"Database provider for {backend_type.value} not yet implemented")

            provider = provider_cls(config, config=self.config)
            self._providers[backend_type] = provider
        self.logger.info(f"Created new {backend_type.value} database provider")
        return provider

    def get_provider(self, backend_type: BackendType | str) -> Optional[DatabaseProvider]:
        """Return the cached provider for ``backend_type`` or None. Never constructs."""
        backend_type = parse_backend_type(backend_type)
        with self._lock:
            return self._providers.get(backend_type)

    def __contains__(self, backend_type: BackendType | str) -> bool:
        return self.get_provider(backend_type) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._providers)

    async def close_all(self) -> None:
        """Disconnect every cached provider concurrently, then empty the registry.

        Every provider gets a disconnect attempt even if others fail; the registry is cleared either way.

        Raises:
            ProviderShutdownError: After all attempts, if any provider failed to disconnect.
        """
        with self._lock:
            providers = dict(self._providers)

        for backend_type in providers:
            self.logger.info(f"Closing {backend_type.value} database connection")
        results = await asyncio.gather(
            *(provider.disconnect() for provider in providers.values()), return_exceptions=True
        )

        with self._lock:
            for backend_type, provider in providers.items():
                if self._providers.get(backend_type) is provider:
                    del self._providers[backend_type]

        errors = {}
        for backend_type, result in zip(providers, results):
            if isinstance(result, BaseException):
                self.logger.error(f"Error closing {backend_type.value} database connection: {result}")
                errors[backend_type.value] = result
        if errors:
            raise ProviderShutdownError(errors)
        self.logger.info("All database connections closed")
