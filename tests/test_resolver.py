"""Tests for per-call connection string resolution."""

from __future__ import annotations

import pytest

from mssql_mcp.config import load_settings
from mssql_mcp.database.resolver import ConnectionResolver
from mssql_mcp.errors import ConnectionResolutionError


@pytest.fixture
def resolver() -> ConnectionResolver:
    return ConnectionResolver(
        load_settings(
            {
                "MSSQL_CONNECTION_STRING": "Server=default",
                "CONNECTION_CRM_APP": "Server=crm",
                "CONNECTION_HR_SYSTEM": "Server=hr",
            }
        )
    )


@pytest.mark.parametrize("alias", [None, "crm_app", "missing"])
def test_explicit_string_always_wins(resolver: ConnectionResolver, alias: str | None) -> None:
    assert resolver.resolve("Server=explicit", alias) == "Server=explicit"


def test_named_connection_is_returned(resolver: ConnectionResolver) -> None:
    assert resolver.resolve(connection_name="hr_system") == "Server=hr"


def test_named_connection_wins_over_default(resolver: ConnectionResolver) -> None:
    assert resolver.resolve(None, "crm_app") == "Server=crm"


def test_unknown_alias_lists_known_aliases(resolver: ConnectionResolver) -> None:
    with pytest.raises(ConnectionResolutionError) as excinfo:
        resolver.resolve(connection_name="payroll")

    message = str(excinfo.value)
    assert "Named connection 'payroll' not found" in message
    assert "crm_app" in message
    assert "hr_system" in message
    assert set(excinfo.value.available) == {"crm_app", "hr_system"}


def test_alias_lookup_is_case_sensitive(resolver: ConnectionResolver) -> None:
    with pytest.raises(ConnectionResolutionError):
        resolver.resolve(connection_name="CRM_APP")


def test_default_is_used_when_nothing_given(resolver: ConnectionResolver) -> None:
    assert resolver.resolve() == "Server=default"


def test_empty_explicit_string_falls_through(resolver: ConnectionResolver) -> None:
    assert resolver.resolve("", None) == "Server=default"


def test_nothing_configured_raises() -> None:
    resolver = ConnectionResolver(load_settings({}))

    with pytest.raises(ConnectionResolutionError, match="no default connection string configured"):
        resolver.resolve()


def test_unknown_alias_without_default_still_reports_alias() -> None:
    resolver = ConnectionResolver(load_settings({}))

    with pytest.raises(ConnectionResolutionError, match="Named connection 'prod' not found"):
        resolver.resolve(connection_name="prod")
