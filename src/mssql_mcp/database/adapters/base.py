"""Abstract base class for live database sessions."""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from ..connection import ResolvedConnectionConfig

# Session states
CONNECTING = "connecting"
LOGGED_IN = "logged_in"
CLOSED = "closed"

FaultListener = Callable[["BaseAdapter", Exception], None]


class BaseAdapter(ABC):
    """One network session to a SQL Server instance.

    A session starts in ``connecting``, moves to ``logged_in`` after a
    successful handshake and ends in ``closed`` when it is closed or
    faults. Listeners registered with :meth:`subscribe` are told about
    faults so caches can drop the session.
    """

    def __init__(self, config: ResolvedConnectionConfig):
        self.config = config
        self.state = CONNECTING
        self.connection: Optional[Any] = None
        self._listeners: set[FaultListener] = set()

    @property
    def is_logged_in(self) -> bool:
        return self.state == LOGGED_IN

    @abstractmethod
    async def connect(self) -> None:
        """Perform the handshake.

        Raises:
            DriverConnectionError: If login fails
        """

    @abstractmethod
    async def execute(self, sql: str) -> list[dict[str, Any]]:
        """Execute SQL text and return every row as a column -> value dict.

        Raises:
            DriverConnectionError: If the session faults
            DriverQueryError: If the server rejects the command
        """

    @abstractmethod
    def close(self) -> None:
        """Close the session and release resources."""

    def subscribe(self, listener: FaultListener) -> Callable[[], None]:
        """Register a fault listener; returns an unsubscribe handle."""
        self._listeners.add(listener)

        def _unsubscribe() -> None:
            self._listeners.discard(listener)

        return _unsubscribe

    def _fault(self, error: Exception) -> None:
        """Close the faulted session, then notify listeners."""
        self.close()
        self.state = CLOSED
        for listener in tuple(self._listeners):
            listener(self, error)
