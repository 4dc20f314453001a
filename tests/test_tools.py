"""Tests for the connection-level tools and their MCP dispatch."""

from __future__ import annotations

import json
from datetime import datetime
from decimal import Decimal

import pytest

from mssql_mcp.config import load_settings
from mssql_mcp.constants import TEST_CONNECTION_QUERY
from mssql_mcp.database.manager import ConnectionManager
from mssql_mcp.server import MssqlMcpServer, build_tools, dispatch_tool
from mssql_mcp import tools

from conftest import FakeAdapterFactory

DEFAULT = "Server=db;Database=crm;User Id=app;Password=pw"


def _manager(adapter_factory: FakeAdapterFactory, **env: str) -> ConnectionManager:
    return ConnectionManager(load_settings(env), adapter_factory)


def test_list_connections_masks_passwords(adapter_factory: FakeAdapterFactory) -> None:
    manager = _manager(adapter_factory, MSSQL_CONNECTION_STRING=DEFAULT, CONNECTION_PROD="Server=p;Password=x")

    payload = json.loads(tools.list_connections_impl(manager).text)

    assert payload == {
        "defaultConnection": "Available",
        "namedConnections": [{"name": "prod", "connectionString": "Server=p;Password=***"}],
        "totalConnections": 1,
    }


def test_list_connections_without_default(adapter_factory: FakeAdapterFactory) -> None:
    payload = json.loads(tools.list_connections_impl(_manager(adapter_factory)).text)

    assert payload["defaultConnection"] == "Not configured"
    assert payload["totalConnections"] == 0


@pytest.mark.anyio
async def test_test_connection_runs_server_info_query(adapter_factory: FakeAdapterFactory) -> None:
    adapter_factory.rows = [{"version": "Microsoft SQL Server 2022", "server_name": "db", "database_name": "crm"}]
    manager = _manager(adapter_factory, MSSQL_CONNECTION_STRING=DEFAULT)

    result = await tools.test_connection_impl(manager)

    assert result.is_error is False
    assert json.loads(result.text)[0]["database_name"] == "crm"
    assert adapter_factory.created[0].executed == [TEST_CONNECTION_QUERY]


@pytest.mark.anyio
async def test_test_connection_reports_unknown_alias(adapter_factory: FakeAdapterFactory) -> None:
    manager = _manager(adapter_factory, CONNECTION_PROD="Server=p")

    result = await tools.test_connection_impl(manager, connection_name="staging")

    assert result.is_error is True
    assert result.text.startswith("Error testing connection: Named connection 'staging' not found")
    assert "prod" in result.text


@pytest.mark.anyio
async def test_test_connection_reports_login_failure(adapter_factory: FakeAdapterFactory) -> None:
    adapter_factory.fail_login = True
    manager = _manager(adapter_factory, MSSQL_CONNECTION_STRING=DEFAULT)

    result = await tools.test_connection_impl(manager)

    assert result.is_error is True
    assert "Login failed" in result.text


@pytest.mark.anyio
async def test_execute_query_adds_top_and_serializes_rows(adapter_factory: FakeAdapterFactory) -> None:
    adapter_factory.rows = [{"id": 1, "total": Decimal("9.50"), "at": datetime(2024, 1, 2, 3, 4, 5)}]
    manager = _manager(adapter_factory, MSSQL_CONNECTION_STRING=DEFAULT)

    result = await tools.execute_query_impl(manager, "SELECT id, total, at FROM orders")

    payload = json.loads(result.text)
    assert payload == {
        "query": "SELECT TOP 20 id, total, at FROM orders",
        "rowCount": 1,
        "data": [{"id": 1, "total": "9.50", "at": "2024-01-02T03:04:05"}],
    }


@pytest.mark.anyio
async def test_execute_query_blocks_writes_before_connecting(adapter_factory: FakeAdapterFactory) -> None:
    manager = _manager(adapter_factory, MSSQL_CONNECTION_STRING=DEFAULT)

    result = await tools.execute_query_impl(manager, "DELETE FROM orders")

    assert result.is_error is True
    assert result.text == "Error executing query: Only SELECT queries are allowed for security reasons"
    assert adapter_factory.handshakes == 0


@pytest.mark.anyio
async def test_execute_query_surfaces_server_message(adapter_factory: FakeAdapterFactory) -> None:
    adapter_factory.query_error = "Invalid column name 'nope'."
    manager = _manager(adapter_factory, MSSQL_CONNECTION_STRING=DEFAULT)

    result = await tools.execute_query_impl(manager, "SELECT nope FROM orders")

    assert result.is_error is True
    assert "Invalid column name 'nope'." in result.text


@pytest.mark.anyio
async def test_execute_query_reuses_cached_session(adapter_factory: FakeAdapterFactory) -> None:
    manager = _manager(adapter_factory, CONNECTION_CRM="Server=crm")

    await tools.execute_query_impl(manager, "SELECT 1 AS one", connection_name="crm")
    await tools.execute_query_impl(manager, "SELECT 2 AS two", connection_name="crm")

    assert adapter_factory.handshakes == 1


def test_tools_schema_lists_connection_parameters() -> None:
    server = MssqlMcpServer("test", load_settings({"CONNECTION_PROD": "Server=p"}), row_limit=50)

    by_name = {tool.name: tool for tool in build_tools(server)}

    assert set(by_name) == {"list_connections", "test_connection", "execute_query"}
    assert by_name["execute_query"].inputSchema["required"] == ["query"]
    assert "prod" in by_name["test_connection"].inputSchema["properties"]["connectionName"]["description"]
    assert "top 50 rows" in by_name["execute_query"].description


@pytest.mark.anyio
async def test_dispatch_routes_and_rejects_unknown_tools(adapter_factory: FakeAdapterFactory) -> None:
    server = MssqlMcpServer("test", load_settings({"MSSQL_CONNECTION_STRING": DEFAULT}))
    server.manager = ConnectionManager(server.settings, adapter_factory)

    listed = await dispatch_tool(server, "list_connections", None)
    missing_query = await dispatch_tool(server, "execute_query", {})
    unknown = await dispatch_tool(server, "drop_everything", {})

    assert json.loads(listed.text)["defaultConnection"] == "Available"
    assert missing_query.is_error is True
    assert unknown.text == "Error: Unknown tool 'drop_everything'"
