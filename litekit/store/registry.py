"""Registry of native sqlite connections keyed by canonical database path.

The logical `Database` handle never exposes its native connections, but an
online backup has to run against one. Each connect hook publishes its
connection here so the backup engine can find it again by file.

Entries are never evicted: a backup may be requested at any time against a
handle that is still open, and the set of files per process is small.
"""

import logging
import sqlite3
import threading

from litekit import paths

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """Thread-safe map of canonical path -> native connection. Last writer wins."""

    def __init__(self):
        self._lock = threading.Lock()
        self._connections: dict[str, sqlite3.Connection] = {}

    def register(self, path: str, conn: sqlite3.Connection) -> sqlite3.Connection | None:
        """Store or overwrite the connection for `path`, returning the one replaced.

        No-op for empty or memory paths.
        """
        key = paths.canonical(path)
        if not key:
            return None
        with self._lock:
            previous = self._connections.get(key)
            self._connections[key] = conn
        suffix = " (replaced)" if previous is not None else ""
        logger.debug(f"Registered connection for {key}{suffix}")
        return previous

    def lookup(self, path: str) -> sqlite3.Connection | None:
        key = paths.canonical(path)
        if not key:
            return None
        with self._lock:
            return self._connections.get(key)

    def discard(self, path: str, conn: sqlite3.Connection) -> bool:
        """Remove the entry for `path` only if it still maps to `conn`."""
        return self.restore(path, None, conn)

    def restore(
        self, path: str, previous: sqlite3.Connection | None, conn: sqlite3.Connection
    ) -> bool:
        """Undo a `register` of `conn`: put `previous` back, or drop the entry if none.

        Does nothing once another writer has replaced `conn`.
        """
        key = paths.canonical(path)
        with self._lock:
            if not key or self._connections.get(key) is not conn:
                return False
            if previous is None:
                del self._connections[key]
            else:
                self._connections[key] = previous
        return True

    def paths(self) -> list[str]:
        with self._lock:
            return sorted(self._connections)

    def __contains__(self, path: str) -> bool:
        return self.lookup(path) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)


registry = ConnectionRegistry()
