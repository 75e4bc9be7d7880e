"""Storage-layer exceptions."""

from typing import Mapping


class StorageError(Exception):
    """Base exception for storage backend errors."""

    pass


class ProviderConnectionError(StorageError, ConnectionError):
    """Raised when the handshake with a storage backend fails."""

    pass


class NotConnectedError(StorageError):
    """Raised when an operation needs a live connection and the provider has none."""

    pass


class UnsupportedBackendError(StorageError, ValueError):
    """Raised for an unknown backend type, or one with no configuration mapping."""

    pass


class BackendNotImplementedError(StorageError, NotImplementedError):
    """Raised for a recognized backend type that has no concrete provider yet."""

    pass


class QueryError(StorageError):
    """Raised when a raw query is malformed or fails to execute. The backend error is kept as ``__cause__``."""

    pass


class ProviderShutdownError(StorageError):
    """Raised by ``ProviderRegistry.close_all`` once every provider was attempted and at least one failed."""

    def __init__(self, errors: Mapping[str, BaseException]):
        self.errors = dict(errors)
        details = ", ".join(f"{backend}: {error!r}" for backend, error in self.errors.items())
        super().__init__(f"Failed to close {len(self.errors)} provider(s): {details}")
