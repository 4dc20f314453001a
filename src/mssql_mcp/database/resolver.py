"""Per-call selection of the connection string to use."""

from typing import Mapping, Optional

from ..config import ServerSettings
from ..errors import ConnectionResolutionError


class ConnectionResolver:
    """Resolves explicit string > named connection > default connection."""

    def __init__(self, settings: ServerSettings):
        self.settings = settings

    @property
    def named_connections(self) -> Mapping[str, str]:
        return self.settings.named_connections

    @property
    def default_connection_string(self) -> Optional[str]:
        return self.settings.default_connection_string

    def resolve(self, connection_string: Optional[str] = None, connection_name: Optional[str] = None) -> str:
        """Pick the connection string for one call.

        Args:
            connection_string: Explicit connection string; always wins when non-empty
            connection_name: Alias of a named connection (matched exactly against
                the lowercased aliases)

        Returns:
            The resolved raw connection string

        Raises:
            ConnectionResolutionError: If the alias is unknown, or nothing is
                provided and no default connection is configured
        """
        if connection_string:
            return connection_string

        if connection_name:
            named = self.named_connections.get(connection_name)
            if not named:
                raise ConnectionResolutionError.unknown_alias(connection_name, self.named_connections.keys())
            return named

        if self.default_connection_string:
            return self.default_connection_string

        raise ConnectionResolutionError.nothing_configured()
