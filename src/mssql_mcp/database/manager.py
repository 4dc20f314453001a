"""Entry point used by the tool layer: resolve, connect, execute."""

import logging
from typing import Any, Optional

from .adapters import BaseAdapter
from .cache import AdapterFactory, ConnectionCache
from .connection import ResolvedConnectionConfig, parse_connection_string
from .resolver import ConnectionResolver
from ..config import ServerSettings

logger = logging.getLogger("mssql_mcp")


class ConnectionManager:
    """Owns the resolver and the session cache for one server process."""

    def __init__(self, settings: ServerSettings, adapter_factory: Optional[AdapterFactory] = None):
        self.settings = settings
        self.resolver = ConnectionResolver(settings)
        self.cache = ConnectionCache(adapter_factory) if adapter_factory else ConnectionCache()

    def resolve_connection_string(
        self, connection_string: Optional[str] = None, connection_name: Optional[str] = None
    ) -> str:
        return self.resolver.resolve(connection_string, connection_name)

    def parse_connection_string(self, connection_string: str) -> ResolvedConnectionConfig:
        return parse_connection_string(connection_string, self.settings.windows_credentials)

    async def get_connection(
        self, connection_string: Optional[str] = None, connection_name: Optional[str] = None
    ) -> BaseAdapter:
        """Return a logged-in session for the call, reusing a cached one when possible.

        Raises:
            ConnectionResolutionError: If no connection string can be resolved
            DriverConnectionError: If the handshake fails
        """
        resolved = self.resolve_connection_string(connection_string, connection_name)
        return await self.cache.get_or_create(resolved, lambda: self.parse_connection_string(resolved))

    async def execute(self, connection: BaseAdapter, sql: str) -> list[dict[str, Any]]:
        """Run SQL text on a session and return all rows.

        Raises:
            DriverConnectionError: If the session faults (it is evicted from the cache)
            DriverQueryError: If the server rejects the command
        """
        return await connection.execute(sql)

    def list_named_connections(self) -> list[dict[str, str]]:
        return [
            {"name": name, "connectionString": connection_string}
            for name, connection_string in self.settings.named_connections.items()
        ]

    def has_default_connection(self) -> bool:
        return bool(self.settings.default_connection_string)

    def close_all(self) -> None:
        """Close every cached session (shutdown hook)."""
        count = len(self.cache)
        self.cache.close_all()
        logger.info(f"Closed {count} cached SQL Server connection(s)")
