"""Tool descriptions and input schemas for the MSSQL MCP server."""

from typing import Sequence


class ToolDescriptions:
    """Centralized management of tool descriptions."""

    @classmethod
    def get_list_connections_description(cls) -> str:
        return "List all available named database connections configured in the server"

    @classmethod
    def get_test_connection_description(cls) -> str:
        return "Test the database connection and return basic server information"

    @classmethod
    def get_execute_query_description(cls, row_limit: int) -> str:
        return f"""Execute a custom SQL SELECT query with automatic limit (top {row_limit} rows).

Only SELECT statements are accepted. Queries mentioning INSERT, UPDATE,
DELETE, DROP, CREATE, ALTER, TRUNCATE, EXEC, MERGE, GRANT, REVOKE or
sp_/xp_ procedures are rejected, even inside strings or comments.
A TOP clause is added when the query has none."""

    @classmethod
    def get_connection_string_description(cls, has_default: bool) -> str:
        base = (
            "SQL Server connection string, e.g. "
            "'Server=host\\\\instance;Database=db;User Id=user;Password=pass' or "
            "'Data Source=host,1433;Initial Catalog=db;Integrated Security=SSPI'."
        )
        if has_default:
            return f"{base} Optional: the server's default connection is used if omitted."
        return f"{base} Required unless connectionName is given: no default connection is configured."

    @classmethod
    def get_connection_name_description(cls, names: Sequence[str]) -> str:
        if names:
            return f"Named connection to use. Configured: {', '.join(sorted(names))}"
        return "Named connection to use (none are configured on this server)"

    @classmethod
    def get_query_description(cls) -> str:
        return "SQL SELECT query to execute"

    @classmethod
    def get_connection_properties(cls, has_default: bool, names: Sequence[str]) -> dict:
        """JSON schema properties shared by every tool that opens a connection."""
        return {
            "connectionString": {
                "type": "string",
                "description": cls.get_connection_string_description(has_default),
            },
            "connectionName": {
                "type": "string",
                "description": cls.get_connection_name_description(names),
            },
        }

    @classmethod
    def get_server_instructions(cls, has_default: bool, names: Sequence[str]) -> str:
        instructions = []
        if has_default:
            instructions.append(
                "**Database Configuration**: Server has a DEFAULT connection configured. "
                "Omit 'connectionString' and 'connectionName' unless the user asks for a different database."
            )
        else:
            instructions.append(
                "**Database Configuration**: Server has NO default connection. "
                "Provide 'connectionName' or 'connectionString' on every call."
            )
        if names:
            instructions.append(f"**Named connections**: {', '.join(sorted(names))}")
        return "\n".join(instructions)
