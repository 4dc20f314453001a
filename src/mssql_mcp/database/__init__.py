"""Database layer for the MSSQL MCP server.

Architecture:
- connection.py: connection string parsing into typed driver configuration
- resolver.py: explicit > named > default connection string resolution
- cache.py: live sessions keyed by resolved connection string
- manager.py: the API used by tools (resolve, connect, execute, shutdown)
- validation.py: advisory read-only checks and TOP injection
- formatting.py: JSON result formatting
- adapters/: driver sessions (pymssql)
"""

from mssql_mcp.database.cache import ConnectionCache
from mssql_mcp.database.connection import (
    DefaultAuth,
    NtlmAuth,
    ResolvedConnectionConfig,
    ServerTarget,
    TlsOptions,
    parse_connection_string,
)
from mssql_mcp.database.formatting import format_query_results, to_json
from mssql_mcp.database.manager import ConnectionManager
from mssql_mcp.database.resolver import ConnectionResolver
from mssql_mcp.database.validation import add_top_limit, validate_query

__all__ = [
    "ConnectionCache",
    "ConnectionManager",
    "ConnectionResolver",
    "DefaultAuth",
    "NtlmAuth",
    "ResolvedConnectionConfig",
    "ServerTarget",
    "TlsOptions",
    "add_top_limit",
    "format_query_results",
    "parse_connection_string",
    "to_json",
    "validate_query",
]
