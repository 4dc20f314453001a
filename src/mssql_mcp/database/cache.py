"""Cache of live sessions keyed by resolved connection string."""

import threading
from typing import Callable, Optional

from .adapters import BaseAdapter, create_adapter
from .connection import ResolvedConnectionConfig
from .logging import log_cache_operation, log_connection, QueryTimer
from ..errors import DriverConnectionError

AdapterFactory = Callable[[ResolvedConnectionConfig], BaseAdapter]


class ConnectionCache:
    """Keeps at most one live session per raw connection string.

    Keys are the raw strings, so two spellings of the same server get two
    sessions. A session is stored only after it logs in and is dropped as
    soon as it reports a fault; nothing expires by age or idleness.

    Two calls that miss on the same key at the same time both open a
    session and the last one to log in stays cached. Both sessions remain
    usable by their callers.
    """

    def __init__(self, adapter_factory: AdapterFactory = create_adapter):
        self._adapter_factory = adapter_factory
        self._sessions: dict[str, BaseAdapter] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._sessions

    def get(self, key: str) -> Optional[BaseAdapter]:
        """Return the cached session for ``key`` if it is still logged in."""
        with self._lock:
            session = self._sessions.get(key)
        if session is not None and session.is_logged_in:
            return session
        return None

    async def get_or_create(
        self,
        key: str,
        config_factory: Callable[[], ResolvedConnectionConfig],
    ) -> BaseAdapter:
        """Return a logged-in session for ``key``, opening one on a miss.

        Args:
            key: Resolved connection string
            config_factory: Builds the driver configuration (called on a miss only)

        Returns:
            Logged-in session adapter

        Raises:
            DriverConnectionError: If the handshake fails (nothing is cached)
        """
        session = self.get(key)
        if session is not None:
            log_cache_operation(key, "hit", len(self))
            return session

        session = self._adapter_factory(config_factory())
        with QueryTimer() as timer:
            try:
                await session.connect()
            except DriverConnectionError as e:
                log_connection(key, success=False, error=str(e), duration=timer.duration)
                raise
        log_connection(key, success=True, duration=timer.duration)

        session.subscribe(lambda faulted, _error: self.remove(key, faulted))
        with self._lock:
            self._sessions[key] = session
            size = len(self._sessions)
        log_cache_operation(key, "store", size)
        return session

    def remove(self, key: str, session: Optional[BaseAdapter] = None) -> None:
        """Evict ``key``; with ``session`` given, only if it is still the cached one."""
        with self._lock:
            current = self._sessions.get(key)
            if current is None or (session is not None and current is not session):
                return
            del self._sessions[key]
            size = len(self._sessions)
        log_cache_operation(key, "evict", size)

    def close_all(self) -> None:
        """Close every cached session and empty the cache."""
        with self._lock:
            sessions = list(self._sessions.items())
            self._sessions.clear()
        for key, session in sessions:
            session.close()
            log_cache_operation(key, "close", 0)
