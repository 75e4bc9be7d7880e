from datetime import UTC, datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class BackendType(str, Enum):
    """Identifier selecting which storage adapter backs the application."""

    MONGODB = "mongodb"
    POSTGRES = "postgres"
    MYSQL = "mysql"


class ConnectionState(str, Enum):
    """Readiness of a provider's connection handle."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    READY = "ready"
    DISCONNECTING = "disconnecting"


class ConnectionEventKind(str, Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERROR = "error"


class BackendConfig(BaseModel):
    """Connection settings handed to a provider. Immutable once constructed."""

    model_config = ConfigDict(frozen=True)

    uri: str
    user: Optional[str] = None
    password: Optional[str] = Field(default=None, repr=False)
    options: Dict[str, Any] = Field(default_factory=dict)

    @property
    def has_credentials(self) -> bool:
        """Credentials are attached only when both user and password are non-empty."""
        return bool(self.user) and bool(self.password)


class ConnectionEvent(BaseModel):
    """A single entry of a provider's connection history."""

    model_config = ConfigDict(frozen=True)

    kind: ConnectionEventKind
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    message: Optional[str] = None
