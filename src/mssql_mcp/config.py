"""Process-wide settings assembled once from the environment at startup."""

import json
import logging
import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

from .constants import (
    CONNECTIONS_JSON_ENV,
    DEFAULT_CONNECTION_ENV,
    LEGACY_CONNECTIONS_JSON_ENV,
    LEGACY_DOMAIN_ENV,
    LEGACY_PASSWORD_ENV,
    LEGACY_USERNAME_ENV,
    LEGACY_WINDOWS_CREDENTIALS_JSON_ENV,
    NAMED_CONNECTION_PREFIX,
    WINDOWS_CREDENTIALS_JSON_ENV,
    WINDOWS_DOMAIN_ENV,
    WINDOWS_PASSWORD_ENV,
    WINDOWS_USERNAME_ENV,
)
from .errors import ConfigurationParseError

logger = logging.getLogger("mssql_mcp")


@dataclass(frozen=True)
class WindowsCredentials:
    """Credentials injected into connections that use integrated security."""

    username: Optional[str] = None
    password: Optional[str] = None
    domain: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not (self.username or self.password or self.domain)


@dataclass(frozen=True)
class ServerSettings:
    """Immutable snapshot of connection configuration."""

    default_connection_string: Optional[str] = None
    named_connections: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    windows_credentials: WindowsCredentials = field(default_factory=WindowsCredentials)


def load_settings(environ: Optional[Mapping[str, str]] = None) -> ServerSettings:
    """Build server settings from an environment snapshot.

    Args:
        environ: Environment mapping (defaults to ``os.environ``)

    Returns:
        ServerSettings with the default connection string, named
        connections and Windows credentials resolved by precedence
    """
    env = dict(os.environ if environ is None else environ)

    return ServerSettings(
        default_connection_string=env.get(DEFAULT_CONNECTION_ENV) or None,
        named_connections=MappingProxyType(load_named_connections(env)),
        windows_credentials=load_windows_credentials(env),
    )


def load_windows_credentials(env: Mapping[str, str]) -> WindowsCredentials:
    """Resolve Windows credentials; the first tier that is present wins.

    1. WINDOWS_USERNAME / WINDOWS_PASSWORD / WINDOWS_DOMAIN (any subset)
    2. windows_credentials (JSON object)
    3. MSSQL_WINDOWS_CREDENTIALS (JSON object)
    4. MSSQL_USERNAME / MSSQL_PASSWORD / MSSQL_DOMAIN
    """
    individual = (WINDOWS_USERNAME_ENV, WINDOWS_PASSWORD_ENV, WINDOWS_DOMAIN_ENV)
    if any(env.get(name) for name in individual):
        return _credentials_from_vars(env, *individual)

    for source in (WINDOWS_CREDENTIALS_JSON_ENV, LEGACY_WINDOWS_CREDENTIALS_JSON_ENV):
        raw = env.get(source)
        if raw:
            try:
                data = _parse_json_object(source, raw)
            except ConfigurationParseError as e:
                logger.warning(f"Ignoring Windows credentials: {e}")
                return WindowsCredentials()
            return WindowsCredentials(
                username=_string_or_none(data.get("username")),
                password=_string_or_none(data.get("password")),
                domain=_string_or_none(data.get("domain")),
            )

    return _credentials_from_vars(env, LEGACY_USERNAME_ENV, LEGACY_PASSWORD_ENV, LEGACY_DOMAIN_ENV)


def load_named_connections(env: Mapping[str, str]) -> dict[str, str]:
    """Resolve named connections; the first non-empty source wins.

    1. Every CONNECTION_<ALIAS> variable (alias lowercased)
    2. connections (JSON object)
    3. MSSQL_CONNECTIONS (JSON object)
    """
    prefixed = {
        key[len(NAMED_CONNECTION_PREFIX):].lower(): value
        for key, value in env.items()
        if key.startswith(NAMED_CONNECTION_PREFIX) and len(key) > len(NAMED_CONNECTION_PREFIX)
    }
    if prefixed:
        return prefixed

    for source in (CONNECTIONS_JSON_ENV, LEGACY_CONNECTIONS_JSON_ENV):
        raw = env.get(source)
        if raw:
            try:
                data = _parse_json_object(source, raw)
            except ConfigurationParseError as e:
                logger.warning(f"Ignoring named connections: {e}")
                return {}
            connections = {}
            for alias, value in data.items():
                if not isinstance(value, str):
                    logger.warning(f"Skipping named connection '{alias}' from {source}: value is not a string")
                    continue
                connections[alias.lower()] = value
            return connections

    return {}


def _credentials_from_vars(env: Mapping[str, str], user_var: str, password_var: str, domain_var: str) -> WindowsCredentials:
    return WindowsCredentials(
        username=env.get(user_var) or None,
        password=env.get(password_var) or None,
        domain=env.get(domain_var) or None,
    )


def _parse_json_object(source: str, raw: str) -> dict:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigurationParseError(source, str(e)) from e
    if not isinstance(data, dict):
        raise ConfigurationParseError(source, f"expected an object, got {type(data).__name__}")
    return data


def _string_or_none(value: object) -> Optional[str]:
    if isinstance(value, str) and value:
        return value
    return None
