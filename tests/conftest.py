"""Shared fixtures and fakes for the MSSQL MCP tests."""

from __future__ import annotations

from typing import Any

import pytest

from mssql_mcp.database.adapters import CLOSED, LOGGED_IN, BaseAdapter
from mssql_mcp.database.connection import ResolvedConnectionConfig
from mssql_mcp.errors import DriverConnectionError, DriverQueryError


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


class FakeAdapter(BaseAdapter):
    """In-memory session that records handshakes and replays canned rows."""

    def __init__(self, config: ResolvedConnectionConfig, factory: "FakeAdapterFactory") -> None:
        super().__init__(config)
        self._factory = factory
        self.closed_calls = 0
        self.executed: list[str] = []

    async def connect(self) -> None:
        self._factory.handshakes += 1
        if self._factory.fail_login:
            self.state = CLOSED
            raise DriverConnectionError("Login failed for user 'app'", server=self.config.server)
        self.state = LOGGED_IN

    async def execute(self, sql: str) -> list[dict[str, Any]]:
        self.executed.append(sql)
        if self._factory.query_error:
            raise DriverQueryError(f"SQL Server error: {self._factory.query_error}")
        return [dict(row) for row in self._factory.rows]

    def close(self) -> None:
        self.closed_calls += 1
        self.state = CLOSED

    def report_fault(self, message: str = "connection reset") -> None:
        self._fault(DriverConnectionError(message, server=self.config.server))


class FakeAdapterFactory:
    def __init__(self) -> None:
        self.handshakes = 0
        self.fail_login = False
        self.query_error: str | None = None
        self.rows: list[dict[str, Any]] = []
        self.created: list[FakeAdapter] = []

    def __call__(self, config: ResolvedConnectionConfig) -> FakeAdapter:
        adapter = FakeAdapter(config, self)
        self.created.append(adapter)
        return adapter


@pytest.fixture
def adapter_factory() -> FakeAdapterFactory:
    return FakeAdapterFactory()
