import asyncio
import json
from typing import Any, Dict, Mapping, Optional

from bson.errors import BSONError
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import monitoring
from pymongo.errors import PyMongoError

from usergate.database.exceptions import NotConnectedError, ProviderConnectionError, QueryError
from usergate.database.providers.base import DatabaseProvider
from usergate.database.types import BackendConfig, BackendType, ConnectionEventKind, ConnectionState

DEFAULT_DATABASE = "admin"


class _HeartbeatListener(monitoring.ServerHeartbeatListener):
    """Forwards failed server heartbeats to the owning provider."""

    def __init__(self, provider: "MongoDBProvider"):
        self._provider = provider

    def started(self, event):
        pass

    def succeeded(self, event):
        pass

    def failed(self, event):
        self._provider._on_heartbeat_failed(event)


class _TopologyListener(monitoring.TopologyListener):
    """Translates topology changes into disconnected / connected events on the owning provider."""

    def __init__(self, provider: "MongoDBProvider"):
        self._provider = provider

    def opened(self, event):
        pass

    def description_changed(self, event):
        had_server = event.previous_description.has_readable_server()
        has_server = event.new_description.has_readable_server()
        if had_server and not has_server:
            self._provider._on_servers_lost()
        elif has_server and not had_server:
            self._provider._on_servers_restored()

    def closed(self, event):
        pass


class MongoDBProvider(DatabaseProvider):
    """MongoDB connection lifecycle built on motor.

    The handshake is an ``admin`` ``ping``. Once connected, pymongo monitoring listeners keep the provider's readiness
    and event history in step with what the driver observes: losing every readable server moves the provider to
    ``connecting`` (the driver keeps retrying in the background) and records a ``disconnected`` event; regaining one
    moves it back to ``ready``.

    Raw queries are database commands, given as a mapping or a JSON string, run against the database named by
    ``options["database"]``, else the URI's default database, else ``admin``.

    Example:
        .. code-block:: python

            from usergate.database.providers.mongodb import MongoDBProvider
            from usergate.database.types import BackendConfig

            provider = MongoDBProvider(BackendConfig(uri="mongodb://localhost:27017/test"))
            await provider.connect()
            await provider.execute_raw_query('{"ping": 1}')
            await provider.disconnect()
    """

    backend_type = BackendType.MONGODB

    def __init__(self, backend_config: BackendConfig, **kwargs):
        super().__init__(backend_config, **kwargs)
        self._client: Optional[AsyncIOMotorClient] = None
        self._database: Optional[AsyncIOMotorDatabase] = None
        self._servers_lost = False
        self._heartbeat_failed = False
        self._lifecycle_lock = asyncio.Lock()

    async def connect(self) -> None:
        async with self._lifecycle_lock:
            if self.is_connected():
                self.logger.info("MongoDB connection already established")
                return
            if self._client is not None:
                self.logger.debug("Discarding stale MongoDB client before reconnecting")
                self._close_client()

            self._state = ConnectionState.CONNECTING
            self.logger.info("Connecting to MongoDB...")
            client = None
            try:
                client = AsyncIOMotorClient(self._backend_config.uri, **self._client_options())
                await client.admin.command("ping")
                database = self._resolve_database(client)
            except PyMongoError as e:
                if client is not None:
                    client.close()
                self._state = ConnectionState.DISCONNECTED
                message = f"Failed to connect to MongoDB: {e}"
                self._record_event(ConnectionEventKind.ERROR, message)
                raise ProviderConnectionError(message) from e

            self._client = client
            self._database = database
            self._servers_lost = False
            self._heartbeat_failed = False
            self._state = ConnectionState.READY
            self._record_event(ConnectionEventKind.CONNECTED, "MongoDB connection established")

    async def disconnect(self) -> None:
        async with self._lifecycle_lock:
            if self._client is None:
                return
            self._state = ConnectionState.DISCONNECTING
            self._close_client()
            self._record_event(ConnectionEventKind.DISCONNECTED, "Disconnected from MongoDB")

    def is_connected(self) -> bool:
        return self._client is not None and self._state == ConnectionState.READY

    def get_connection(self) -> AsyncIOMotorClient:
        if self._client is None:
            raise NotConnectedError("MongoDB connection not established")
        return self._client

    @property
    def database(self) -> AsyncIOMotorDatabase:
        if self._database is None:
            raise NotConnectedError("MongoDB connection not established")
        return self._database

    async def execute_raw_query(self, query: Any, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Run a database command, e.g. ``'{"ping": 1}'`` or ``{"find": "users", "filter": {...}}``.

        Args:
            query: The command document, as a mapping or a JSON object string. The command name must be its first key.
            params: Extra command fields merged into the command document.

        Returns:
            The command's response document.
        """
        if not self.is_connected():
            raise NotConnectedError("Cannot execute query: MongoDB connection not established")

        command = self._parse_command(query)
        try:
            return await self._database.command(command, **dict(params or {}))
        except (PyMongoError, BSONError) as e:
            self.logger.error(f"Error executing MongoDB command {next(iter(command))!r}: {e}")
            raise QueryError(f"MongoDB command failed: {e}") from e

    def _client_options(self) -> Dict[str, Any]:
        options = {k: v for k, v in self._backend_config.options.items() if k != "database"}
        if self._backend_config.has_credentials:
            options["username"] = self._backend_config.user
            options["password"] = self._backend_config.password
        options["event_listeners"] = list(options.get("event_listeners", [])) + [
            _HeartbeatListener(self),
            _TopologyListener(self),
        ]
        return options

    def _resolve_database(self, client: AsyncIOMotorClient) -> AsyncIOMotorDatabase:
        name = self._backend_config.options.get("database")
        if name:
            return client[name]
        return client.get_default_database(default=DEFAULT_DATABASE)

    def _close_client(self) -> None:
        client, self._client, self._database = self._client, None, None
        try:
            client.close()
        finally:
            self._state = ConnectionState.DISCONNECTED

    @staticmethod
    def _parse_command(query: Any) -> Dict[str, Any]:
        if isinstance(query, (str, bytes)):
            try:
                query = json.loads(query)
            except ValueError as e:
                raise QueryError(f"Invalid MongoDB command JSON: {e}") from e
        if not isinstance(query, Mapping) or not query:
            raise QueryError("MongoDB command must be a non-empty JSON object")
        return dict(query)

    def _on_heartbeat_failed(self, event) -> None:
        if self._state != ConnectionState.READY or self._heartbeat_failed:
            return
        self._heartbeat_failed = True
        self._record_event(
            ConnectionEventKind.ERROR, f"MongoDB connection error: heartbeat to {event.connection_id} failed: {event.reply}"
        )

    def _on_servers_lost(self) -> None:
        if self._client is None or self._state != ConnectionState.READY:
            return
        self._servers_lost = True
        self._state = ConnectionState.CONNECTING
        self._record_event(ConnectionEventKind.DISCONNECTED, "MongoDB disconnected")

    def _on_servers_restored(self) -> None:
        if self._client is None or not self._servers_lost:
            return
        self._servers_lost = False
        self._heartbeat_failed = False
        self._state = ConnectionState.READY
        self._record_event(ConnectionEventKind.CONNECTED, "MongoDB connection re-established")
