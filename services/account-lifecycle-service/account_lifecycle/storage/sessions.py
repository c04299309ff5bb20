"""Live sessions: the open client connections of each account."""

from __future__ import annotations

import logging
from threading import Lock
from typing import Protocol

from ..domain.account import AccountKey
from .registry import ShardedMap

logger = logging.getLogger(__name__)


class Connection(Protocol):
    def close(self) -> None: ...


class Session:
    """Set of connections belonging to one account."""

    def __init__(self, key: AccountKey) -> None:
        self.key = key
        self._connections: list[Connection] = []
        self._lock = Lock()

    def add(self, connection: Connection) -> None:
        with self._lock:
            self._connections.append(connection)

    def discard(self, connection: Connection) -> None:
        with self._lock:
            if connection in self._connections:
                self._connections.remove(connection)

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)

    def close_all(self) -> int:
        """Close every connection; returns how many were closed without error."""
        with self._lock:
            connections, self._connections = self._connections, []
        closed = 0
        for connection in connections:
            try:
                connection.close()
                closed += 1
            except Exception as exc:
                logger.warning("failed to close connection of %s: %s", self.key, exc)
        return closed


class SessionRegistry:
    """Live sessions keyed by :class:`AccountKey`."""

    def __init__(self, shards: int = 16) -> None:
        self._sessions: ShardedMap[AccountKey, Session] = ShardedMap(shards)

    def get(self, key: AccountKey) -> Session | None:
        return self._sessions.get(key)

    def get_or_create(self, key: AccountKey) -> Session:
        return self._sessions.setdefault(key, Session(key))

    def remove(self, key: AccountKey) -> Session | None:
        return self._sessions.pop(key)
