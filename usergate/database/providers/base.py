import threading
from abc import abstractmethod
from collections import deque
from typing import Any, List, Mapping, Optional

from usergate.core import UsergateABC, as_int
from usergate.database.types import BackendConfig, BackendType, ConnectionEvent, ConnectionEventKind, ConnectionState

DEFAULT_EVENT_HISTORY = 256


class DatabaseProvider(UsergateABC):
    """Connection lifecycle for one concrete storage backend.

    A provider owns exactly one native connection handle. It opens and closes that handle, reports readiness, runs
    structured raw queries against it and keeps a bounded history of connection events for diagnostics.

    Subclasses implement :meth:`connect`, :meth:`disconnect`, :meth:`get_connection` and
    :meth:`execute_raw_query`, and drive :attr:`state` / :meth:`_record_event` as the backend reports changes.

    Args:
        backend_config: Connection settings. Treated as read-only by the provider.
        max_events: Size of the connection event history. Defaults to ``USERGATE__CONNECTION_EVENT_HISTORY``.
    """

    backend_type: BackendType

    def __init__(self, backend_config: BackendConfig, *, max_events: Optional[int] = None, **kwargs):
        super().__init__(**kwargs)
        self._backend_config = backend_config
        if max_events is None:
            max_events = as_int(self.config.USERGATE.get("CONNECTION_EVENT_HISTORY"), DEFAULT_EVENT_HISTORY)
        self._events: deque[ConnectionEvent] = deque(maxlen=max(1, max_events))
        # Driver monitoring callbacks arrive on background threads.
        self._events_lock = threading.Lock()
        self._state = ConnectionState.DISCONNECTED

    @property
    def backend_config(self) -> BackendConfig:
        return self._backend_config

    @property
    def state(self) -> ConnectionState:
        return self._state

    @abstractmethod
    async def connect(self) -> None:
        """Open the backend connection. No-op when already connected."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Tear the connection down. No-op when already disconnected."""

    @abstractmethod
    def is_connected(self) -> bool:
        """Whether a handle exists and reports the ready state."""

    @abstractmethod
    def get_connection(self) -> Any:
        """Return the native connection handle.

        Raises:
            NotConnectedError: If called before a successful :meth:`connect`.
        """

    @abstractmethod
    async def execute_raw_query(self, query: Any, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Execute a structured, backend-specific command.

        Raises:
            NotConnectedError: If the provider is not connected.
            QueryError: If the command is malformed or fails to execute.
        """

    def get_connection_events(self) -> List[ConnectionEvent]:
        """Return a copy of the connection event history, oldest first."""
        with self._events_lock:
            return list(self._events)

    def _record_event(self, kind: ConnectionEventKind, message: Optional[str] = None) -> ConnectionEvent:
        event = ConnectionEvent(kind=kind, message=message)
        with self._events_lock:
            self._events.append(event)
        if kind == ConnectionEventKind.ERROR:
            self.logger.error(message or f"{self.backend_type.value} connection error")
        elif kind == ConnectionEventKind.DISCONNECTED:
            self.logger.warning(message or f"{self.backend_type.value} disconnected")
        else:
            self.logger.info(message or f"{self.backend_type.value} connected")
        return event
