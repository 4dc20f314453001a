"""Exception types raised by the MSSQL MCP server."""

from typing import Iterable, Optional


class DatabaseError(Exception):
    """Base class for all errors raised by the database layer."""


class ConfigurationParseError(DatabaseError, ValueError):
    """A structured configuration blob could not be parsed at startup.

    Never surfaced to callers: the loader logs it and treats the source
    as empty.
    """

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(
            f"Failed to parse {source}: {reason}\n"
            f"  Hint: {source} must contain a JSON object"
        )


class ConnectionResolutionError(DatabaseError, LookupError):
    """No connection string could be resolved for a call."""

    def __init__(self, message: str, available: Iterable[str] = ()):
        self.available = tuple(available)
        super().__init__(message)

    @classmethod
    def unknown_alias(cls, alias: str, available: Iterable[str]) -> "ConnectionResolutionError":
        names = tuple(available)
        return cls(
            f"Named connection '{alias}' not found. "
            f"Available connections: {', '.join(names)}",
            available=names,
        )

    @classmethod
    def nothing_configured(cls) -> "ConnectionResolutionError":
        return cls(
            "No connection string provided and no default connection string configured"
        )


class DriverConnectionError(DatabaseError, ConnectionError):
    """The driver failed to log in, or a live session faulted."""

    def __init__(self, message: str, server: Optional[str] = None):
        self.server = server
        super().__init__(message)


class DriverQueryError(DatabaseError, RuntimeError):
    """The server rejected or failed a SQL command."""


class QueryValidationError(DatabaseError, ValueError):
    """A query failed the advisory read-only check."""
