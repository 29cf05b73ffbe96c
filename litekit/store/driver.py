"""Named drivers and the connect hook they run on every new native connection.

The connect hook is the only place a native `sqlite3.Connection` is visible
before it disappears behind a `Database` handle, so it is also where the
connection gets published to the registry for later backups.
"""

import inspect
import logging
import sqlite3
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from litekit.errors import ConnectError

from .registry import ConnectionRegistry, registry

logger = logging.getLogger(__name__)

DEFAULT_DRIVER = "sqlite"

Hook = Callable[[sqlite3.Connection], None]


@dataclass(frozen=True)
class FuncReg:
    """A scalar SQL function to install on each connection.

    `narg=None` derives the argument count from the signature; `*args` maps to -1.
    """

    name: str
    impl: Callable
    pure: bool = True
    narg: int | None = None

    def arity(self) -> int:
        if self.narg is not None:
            return self.narg
        try:
            params = inspect.signature(self.impl).parameters.values()
        except (TypeError, ValueError):
            return -1
        if any(p.kind is p.VAR_POSITIONAL for p in params):
            return -1
        return sum(1 for p in params if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD))


@dataclass
class Driver:
    name: str
    query: str = ""
    hook: Hook | None = None
    funcs: tuple[FuncReg, ...] = ()
    registry: ConnectionRegistry = field(default=registry, repr=False)

    def same_config(self, query: str, hook: Hook | None, funcs: tuple[FuncReg, ...]) -> bool:
        return self.query == query and self.hook is hook and self.funcs == funcs

    def connect(self, dsn: str) -> sqlite3.Connection:
        """Open a native connection and run the connect hook against it.

        Any failing step closes the connection and puts back whatever the
        registry held for the file before, so a failed connect leaves no entry
        of its own and keeps other handles' entries intact.
        """
        conn = sqlite3.connect(
            dsn, uri=dsn.startswith("file:"), check_same_thread=False, isolation_level=None
        )
        conn.row_factory = sqlite3.Row

        filename = ""
        previous = None
        try:
            self._register_functions(conn)
            filename = self._identify(conn)
            previous = self.registry.register(filename, conn)
            self._run_query(conn)
            self._run_hook(conn)
        except Exception:
            self.registry.restore(filename, previous, conn)
            conn.close()
            raise
        return conn

    def _register_functions(self, conn: sqlite3.Connection) -> None:
        for fn in self.funcs:
            try:
                conn.create_function(fn.name, fn.arity(), fn.impl, deterministic=fn.pure)
            except sqlite3.Error as e:
                raise ConnectError(f"failed to register {fn.name!r}: {e}") from e
            logger.debug(f"registered function: {fn.name}")

    def _identify(self, conn: sqlite3.Connection) -> str:
        try:
            rows = conn.execute("PRAGMA database_list").fetchall()
            main = next(row for row in rows if row[1] == "main")
            if main[2] is None:
                raise ValueError("no file column for main database")
        except (sqlite3.Error, StopIteration, ValueError) as e:
            raise ConnectError(f"couldn't get filename for connection {conn!r}: {e}") from e
        return main[2]

    def _run_query(self, conn: sqlite3.Connection) -> None:
        if not self.query:
            return
        try:
            conn.executescript(self.query)
        except sqlite3.Error as e:
            raise ConnectError(f"connection query failed: {self.query} -- {e}") from e

    def _run_hook(self, conn: sqlite3.Connection) -> None:
        if self.hook is None:
            return
        try:
            self.hook(conn)
        except ConnectError:
            raise
        except Exception as e:
            raise ConnectError(f"connect hook failed: {e}") from e


class DriverTable:
    """Name-keyed drivers. The first configuration installed under a name wins."""

    def __init__(self, registry: ConnectionRegistry | None = None):
        self.registry = registry if registry is not None else ConnectionRegistry()
        self._lock = threading.Lock()
        self._drivers: dict[str, Driver] = {}

    def install(
        self,
        name: str = DEFAULT_DRIVER,
        query: str = "",
        hook: Hook | None = None,
        funcs: Iterable[FuncReg] = (),
    ) -> Driver:
        """Install a driver under `name`, or return the one already installed.

        A repeat install never reconfigures the driver; a differing configuration
        only produces a warning, so distinct configurations need distinct names.
        """
        funcs = tuple(funcs)
        with self._lock:
            existing = self._drivers.get(name)
            if existing is not None:
                if not existing.same_config(query, hook, funcs):
                    logger.warning(
                        f"Driver '{name}' already installed; ignoring new configuration"
                    )
                return existing
            logger.debug(f"registering driver: {name}")
            driver = Driver(name, query=query, hook=hook, funcs=funcs, registry=self.registry)
            self._drivers[name] = driver
            return driver

    def get(self, name: str) -> Driver | None:
        with self._lock:
            return self._drivers.get(name)

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._drivers)


drivers = DriverTable(registry)
