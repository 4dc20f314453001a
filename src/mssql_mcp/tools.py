"""Connection-level tool implementations for the MSSQL MCP server."""

import logging
from typing import Optional

from .constants import DEFAULT_ROW_LIMIT, TEST_CONNECTION_QUERY
from .database.formatting import format_query_results, to_json
from .database.logging import log_query_execution, sanitize_connection_string
from .database.manager import ConnectionManager
from .database.validation import add_top_limit, validate_query
from .errors import DatabaseError, QueryValidationError

logger = logging.getLogger("mssql_mcp")


class ToolResult:
    """Text payload returned to the MCP client, flagged when it is an error."""

    def __init__(self, text: str, is_error: bool = False):
        self.text = text
        self.is_error = is_error

    @classmethod
    def error(cls, action: str, error: Exception) -> "ToolResult":
        return cls(f"Error {action}: {error}", is_error=True)


def list_connections_impl(manager: ConnectionManager) -> ToolResult:
    """Describe the default connection and every named connection."""
    connections = [
        {"name": item["name"], "connectionString": sanitize_connection_string(item["connectionString"])}
        for item in manager.list_named_connections()
    ]
    return ToolResult(
        to_json(
            {
                "defaultConnection": "Available" if manager.has_default_connection() else "Not configured",
                "namedConnections": connections,
                "totalConnections": len(connections),
            }
        )
    )


async def test_connection_impl(
    manager: ConnectionManager,
    connection_string: Optional[str] = None,
    connection_name: Optional[str] = None,
) -> ToolResult:
    """Connect and report the server version, server name and current database."""
    try:
        connection = await manager.get_connection(connection_string, connection_name)
        rows = await manager.execute(connection, TEST_CONNECTION_QUERY)
    except DatabaseError as e:
        logger.error(f"test_connection failed: {type(e).__name__}: {e}")
        return ToolResult.error("testing connection", e)
    return ToolResult(to_json(rows))


async def execute_query_impl(
    manager: ConnectionManager,
    query: str,
    connection_string: Optional[str] = None,
    connection_name: Optional[str] = None,
    limit: int = DEFAULT_ROW_LIMIT,
) -> ToolResult:
    """Run a read-only SELECT with an automatic TOP limit.

    Args:
        manager: Connection manager for this server process
        query: SELECT query from the client
        connection_string: Optional explicit connection string
        connection_name: Optional named connection
        limit: Row limit injected as TOP when the query has none

    Returns:
        ToolResult with ``{query, rowCount, data}`` JSON, or an error result
    """
    try:
        is_valid, error_message = validate_query(query)
        if not is_valid:
            log_query_execution(query, server="-", success=False, error=error_message, blocked=True)
            raise QueryValidationError(error_message)

        limited_query = add_top_limit(query, limit)
        connection = await manager.get_connection(connection_string, connection_name)
        rows = await manager.execute(connection, limited_query)
    except DatabaseError as e:
        logger.error(f"execute_query failed: {type(e).__name__}: {e}")
        return ToolResult.error("executing query", e)

    return ToolResult(format_query_results(rows, limited_query))
