"""Session adapters wrapping the SQL Server driver."""

from .base import BaseAdapter, CLOSED, CONNECTING, LOGGED_IN
from .mssql import MssqlAdapter
from ..connection import ResolvedConnectionConfig
from ...constants import LOGIN_TIMEOUT

__all__ = [
    "BaseAdapter",
    "MssqlAdapter",
    "CONNECTING",
    "LOGGED_IN",
    "CLOSED",
    "create_adapter",
]


def create_adapter(config: ResolvedConnectionConfig, login_timeout: int = LOGIN_TIMEOUT) -> BaseAdapter:
    """Factory function creating a not-yet-connected session for a configuration.

    Args:
        config: Parsed connection configuration
        login_timeout: Handshake timeout in seconds

    Returns:
        Session adapter in the ``connecting`` state
    """
    return MssqlAdapter(config, login_timeout=login_timeout)
