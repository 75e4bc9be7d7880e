from usergate.database.types import BackendConfig, BackendType, ConnectionEvent, ConnectionEventKind, ConnectionState
from usergate.database.exceptions import (
    BackendNotImplementedError,
    NotConnectedError,
    ProviderConnectionError,
    ProviderShutdownError,
    QueryError,
    StorageError,
    UnsupportedBackendError,
)
from usergate.database.providers import DatabaseProvider, MongoDBProvider
from usergate.database.registry import ProviderRegistry, parse_backend_type
from usergate.database.service import StorageService, backend_config_from_settings

__all__ = [
    "BackendConfig",
    "backend_config_from_settings",
    "BackendNotImplementedError",
    "BackendType",
    "ConnectionEvent",
    "ConnectionEventKind",
    "ConnectionState",
    "DatabaseProvider",
    "MongoDBProvider",
    "NotConnectedError",
    "parse_backend_type",
    "ProviderConnectionError",
    "ProviderRegistry",
    "ProviderShutdownError",
    "QueryError",
    "StorageError",
    "StorageService",
    "UnsupportedBackendError",
]
