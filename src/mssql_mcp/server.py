"""MSSQL MCP server - query multiple SQL Server databases from tool-calling clients."""

import sys
import logging
from typing import Optional

from mcp.server import Server
import mcp.server.stdio
import mcp.types as types
from mcp.server.models import InitializationOptions
from mcp.server.lowlevel import NotificationOptions

from .config import ServerSettings, load_settings
from .constants import DEFAULT_ROW_LIMIT, EXIT_FAILURE, EXIT_SUCCESS, SERVER_NAME, SERVER_VERSION
from .database.logging import sanitize_connection_string
from .database.manager import ConnectionManager
from .tool_definitions import ToolDescriptions
from .tools import ToolResult, execute_query_impl, list_connections_impl, test_connection_impl

# Set up server logger on stderr; stdout carries the MCP stream
logger = logging.getLogger("mssql_mcp")
logger.setLevel(logging.INFO)
handler = logging.StreamHandler(sys.stderr)
handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
logger.addHandler(handler)


class ToolCallError(Exception):
    """Raised from a tool handler so the MCP layer returns an error result."""


class MssqlMcpServer(Server):
    """MCP server holding the connection manager for this process."""

    def __init__(self, name: str, settings: ServerSettings, row_limit: int = DEFAULT_ROW_LIMIT):
        super().__init__(name)
        self.settings = settings
        self.row_limit = row_limit
        self.manager = ConnectionManager(settings)

    @property
    def connection_names(self) -> list[str]:
        return list(self.settings.named_connections)


def build_tools(server: MssqlMcpServer) -> list[types.Tool]:
    has_default = server.manager.has_default_connection()
    connection_properties = ToolDescriptions.get_connection_properties(has_default, server.connection_names)
    return [
        types.Tool(
            name="list_connections",
            description=ToolDescriptions.get_list_connections_description(),
            inputSchema={"type": "object", "properties": {}},
        ),
        types.Tool(
            name="test_connection",
            description=ToolDescriptions.get_test_connection_description(),
            inputSchema={"type": "object", "properties": dict(connection_properties)},
        ),
        types.Tool(
            name="execute_query",
            description=ToolDescriptions.get_execute_query_description(server.row_limit),
            inputSchema={
                "type": "object",
                "properties": {
                    **connection_properties,
                    "query": {
                        "type": "string",
                        "description": ToolDescriptions.get_query_description(),
                    },
                },
                "required": ["query"],
            },
        ),
    ]


async def dispatch_tool(server: MssqlMcpServer, name: str, arguments: Optional[dict]) -> ToolResult:
    """Route a tool call to its implementation."""
    arguments = arguments or {}
    connection_string = arguments.get("connectionString")
    connection_name = arguments.get("connectionName")

    if name == "list_connections":
        return list_connections_impl(server.manager)
    if name == "test_connection":
        return await test_connection_impl(server.manager, connection_string, connection_name)
    if name == "execute_query":
        query = arguments.get("query")
        if not isinstance(query, str):
            return ToolResult("Error executing query: 'query' must be a string", is_error=True)
        return await execute_query_impl(
            server.manager, query, connection_string, connection_name, limit=server.row_limit
        )
    return ToolResult(f"Error: Unknown tool '{name}'", is_error=True)


def register_handlers(server: MssqlMcpServer) -> None:
    @server.list_resources()
    async def list_resources() -> list[types.Resource]:
        """List available resources (none for this server)."""
        return []

    @server.list_prompts()
    async def list_prompts() -> list[types.Prompt]:
        """List available prompts (none for this server)."""
        return []

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return build_tools(server)

    @server.call_tool()
    async def call_tool(name: str, arguments: dict) -> list[types.TextContent]:
        """Handle tool calls."""
        logger.debug(f"call_tool invoked: {name}")
        result = await dispatch_tool(server, name, arguments)
        if result.is_error:
            raise ToolCallError(result.text)
        return [types.TextContent(type="text", text=result.text)]


async def test_default_connection(server: MssqlMcpServer) -> bool:
    """Run test_connection against the default connection and print the outcome."""
    print()
    if not server.manager.has_default_connection():
        print("Error: No default connection configured!")
        print("Set MSSQL_CONNECTION_STRING and run: mssql-mcp --test")
        return False

    print(f"Connection: {sanitize_connection_string(server.settings.default_connection_string)}")
    print("Running test query...")
    result = await test_connection_impl(server.manager)
    print()
    if result.is_error:
        print("[FAILED] Test FAILED")
        print(result.text)
        return False

    print("[PASSED] Test PASSED")
    print(result.text)
    return True


async def main():
    """Parse command line arguments and run the server."""
    args = sys.argv[1:]
    test_mode = False
    row_limit = DEFAULT_ROW_LIMIT

    i = 0
    while i < len(args):
        if args[i] == "--test":
            test_mode = True
            args.pop(i)
        elif args[i] == "--row-limit":
            if i + 1 >= len(args) or not args[i + 1].isdigit() or int(args[i + 1]) < 1:
                sys.stderr.write("Error: --row-limit requires a positive integer\n")
                sys.exit(EXIT_FAILURE)
            row_limit = int(args[i + 1])
            args.pop(i)
            args.pop(i)
        else:
            i += 1

    if args:
        sys.stderr.write(f"Error: Unexpected arguments: {' '.join(args)}\n")
        sys.stderr.write("Usage: mssql-mcp [--row-limit <n>] [--test]\n")
        sys.stderr.write("\n")
        sys.stderr.write("Configuration (environment variables):\n")
        sys.stderr.write("  MSSQL_CONNECTION_STRING     - Default connection string\n")
        sys.stderr.write("  CONNECTION_<NAME>           - Named connection, used as connectionName=<name>\n")
        sys.stderr.write("  WINDOWS_USERNAME/PASSWORD/DOMAIN - Credentials for Integrated Security\n")
        sys.exit(EXIT_FAILURE)

    server = MssqlMcpServer(SERVER_NAME, load_settings(), row_limit=row_limit)
    register_handlers(server)

    logger.info("Starting MSSQL MCP Server")
    logger.info(f"Default connection: {'Available' if server.manager.has_default_connection() else 'Not configured'}")
    if server.connection_names:
        logger.info(f"Named connections: {', '.join(sorted(server.connection_names))}")
    if not server.settings.windows_credentials.is_empty:
        logger.info("Windows credentials: Set")

    try:
        if test_mode:
            success = await test_default_connection(server)
            sys.exit(EXIT_SUCCESS if success else EXIT_FAILURE)

        async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
            init_options = InitializationOptions(
                server_name=SERVER_NAME,
                server_version=SERVER_VERSION,
                capabilities=server.get_capabilities(
                    notification_options=NotificationOptions(),
                    experimental_capabilities={},
                ),
                instructions=ToolDescriptions.get_server_instructions(
                    server.manager.has_default_connection(), server.connection_names
                ),
            )
            await server.run(read_stream, write_stream, init_options)
    finally:
        logger.info("Shutting down server...")
        server.manager.close_all()


def run():
    """Entry point for the mssql-mcp command."""
    import asyncio

    asyncio.run(main())


if __name__ == "__main__":
    run()
