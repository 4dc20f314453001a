"""SQL Server session adapter built on pymssql."""

import asyncio
import logging
from typing import Any, Optional

import pymssql

from .base import CLOSED, LOGGED_IN, BaseAdapter
from ..connection import NtlmAuth, ResolvedConnectionConfig
from ..logging import log_query_execution, QueryTimer
from ...constants import LOGIN_TIMEOUT
from ...errors import DriverConnectionError, DriverQueryError

logger = logging.getLogger(__name__)

# DB-Library codes meaning the session itself is gone, not just the command
SESSION_FAULT_CODES = {
    20003,  # server connection timed out
    20004,  # read from the server failed
    20006,  # write to the server failed
    20047,  # DBPROCESS is dead or not enabled
}


def _code_and_message(error: Exception) -> Optional[tuple[Any, Any]]:
    """Return ``(code, message)`` from a pymssql exception, if it carries one.

    Cursor errors carry ``args == (code, message)``; ``pymssql.connect``
    re-raises with the pair wrapped as ``args == ((code, message),)``.
    """
    args = error.args
    if len(args) == 1 and isinstance(args[0], tuple):
        args = args[0]
    if len(args) >= 2 and isinstance(args[0], int):
        return args[0], args[1]
    return None


def driver_message(error: Exception) -> str:
    """Extract the server/driver message from a pymssql exception."""
    parts = _code_and_message(error)
    if parts is None:
        return str(error)
    message = parts[1]
    if isinstance(message, bytes):
        message = message.decode("utf-8", errors="replace")
    return str(message).strip()


def is_session_fault(error: Exception) -> bool:
    if isinstance(error, pymssql.InterfaceError):
        return True
    parts = _code_and_message(error)
    return parts is not None and parts[0] in SESSION_FAULT_CODES


class MssqlAdapter(BaseAdapter):
    """Live SQL Server session using the pymssql (FreeTDS) driver.

    pymssql is blocking, so connect and execute run in a worker thread and
    the event loop only suspends on those two calls. Commands on one
    session are serialized; TDS allows a single active request per session.
    """

    def __init__(self, config: ResolvedConnectionConfig, login_timeout: int = LOGIN_TIMEOUT):
        super().__init__(config)
        self.login_timeout = login_timeout
        self._lock = asyncio.Lock()

    def connect_params(self) -> dict[str, Any]:
        """Translate the resolved configuration into pymssql keyword arguments."""
        params: dict[str, Any] = {
            "server": self.config.server.replace(",", ":", 1),
            "login_timeout": self.login_timeout,
            "autocommit": True,
            "encryption": "require" if self.config.tls.encrypt else "off",
        }
        if self.config.database:
            params["database"] = self.config.database

        auth = self.config.auth
        user_name = auth.user_name
        if isinstance(auth, NtlmAuth) and auth.domain and user_name and "\\" not in user_name:
            user_name = f"{auth.domain}\\{user_name}"
        # Omitted entirely (not "") so the driver falls back to the process identity
        if user_name is not None:
            params["user"] = user_name
        if auth.password is not None:
            params["password"] = auth.password
        return params

    async def connect(self) -> None:
        try:
            self.connection = await asyncio.to_thread(pymssql.connect, **self.connect_params())
        except pymssql.Error as e:
            self.state = CLOSED
            raise DriverConnectionError(
                f"Failed to connect to SQL Server '{self.config.server}'\n"
                f"  Error: {driver_message(e)}\n"
                f"  Hint: Check the server name, network access and credentials",
                server=self.config.server,
            ) from e

        self.state = LOGGED_IN
        logger.info(f"Connected to SQL Server: {self.config.database or 'default database'}@{self.config.server}")

    async def execute(self, sql: str) -> list[dict[str, Any]]:
        async with self._lock:
            # Checked under the lock: close() may run while a command waits
            if not self.is_logged_in:
                raise DriverConnectionError(
                    f"Session to '{self.config.server}' is not logged in (state: {self.state})",
                    server=self.config.server,
                )

            with QueryTimer() as timer:
                try:
                    rows = await asyncio.to_thread(self._run, sql)
                except pymssql.Error as e:
                    error: Optional[Exception] = e
                else:
                    error = None

        if error is None:
            log_query_execution(sql, self.config.server, success=True, row_count=len(rows), duration=timer.duration)
            return rows

        message = driver_message(error)
        log_query_execution(sql, self.config.server, success=False, error=message, duration=timer.duration)
        if is_session_fault(error):
            wrapped: Exception = DriverConnectionError(
                f"Connection to '{self.config.server}' was lost: {message}",
                server=self.config.server,
            )
            self._fault(wrapped)
        else:
            wrapped = DriverQueryError(f"SQL Server error: {message}")
        raise wrapped from error

    def _run(self, sql: str) -> list[dict[str, Any]]:
        cursor = self.connection.cursor()
        try:
            cursor.execute(sql)
            if cursor.description is None:
                return []
            columns = [column[0] for column in cursor.description]
            return [dict(zip(columns, row)) for row in cursor]
        finally:
            cursor.close()

    def close(self) -> None:
        if self.connection:
            try:
                self.connection.close()
                logger.info(f"Closed SQL Server connection to {self.config.server}")
            except pymssql.Error as e:
                logger.warning(f"Error closing SQL Server connection: {e}")
            finally:
                self.connection = None
        self.state = CLOSED
