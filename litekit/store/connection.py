"""Logical database handles and the open logic shared by callers and backups."""

import logging
import sqlite3
import threading
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from litekit import paths

from .driver import DEFAULT_DRIVER, Driver, DriverTable, FuncReg, Hook, drivers

logger = logging.getLogger(__name__)

# columns is None after the first row
RowHandler = Callable[[list[str] | None, tuple], None]


class Database:
    """Logical handle over one DSN and driver.

    Native connections are created lazily, one per thread, through the
    driver so that each runs the connect hook. Callers never see them.
    """

    def __init__(self, dsn: str, driver: Driver, table: DriverTable):
        self.dsn = dsn
        self.driver = driver
        self.drivers = table
        self._local = threading.local()
        self._lock = threading.Lock()
        self._opened: list[sqlite3.Connection] = []
        self._closed = False

    def __repr__(self) -> str:
        return f"Database({self.dsn!r}, driver={self.driver.name!r})"

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def connection(self) -> sqlite3.Connection:
        """Return this thread's native connection, opening it on first use."""
        if self._closed:
            raise sqlite3.ProgrammingError(f"Database {self.dsn} is closed")
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            return conn
        conn = self.driver.connect(self.dsn)
        self._local.conn = conn
        with self._lock:
            self._opened.append(conn)
        return conn

    def ping(self) -> None:
        self.connection().execute("SELECT 1").fetchone()

    def execute(self, sql: str, params: Sequence[Any] = ()) -> int:
        """Run a side-effecting statement, returning the affected row count."""
        return self.connection().execute(sql, params).rowcount

    def query(self, sql: str, handler: RowHandler, params: Sequence[Any] = ()) -> None:
        """Run a row-producing statement, calling `handler` once per row.

        The handler receives the column names with the first row only.
        """
        cursor = self.connection().execute(sql, params)
        try:
            columns = [d[0] for d in cursor.description or ()]
            for row in cursor:
                handler(columns, tuple(row))
                columns = None
        finally:
            cursor.close()

    def query_row(self, sql: str, params: Sequence[Any] = ()) -> sqlite3.Row | None:
        return self.connection().execute(sql, params).fetchone()

    @property
    def filename(self) -> str:
        """Canonical path of the backing file, "" for memory databases."""
        for _seq, name, file in self.connection().execute("PRAGMA database_list"):
            if name == "main":
                return paths.canonical(file or "")
        return ""

    def close(self) -> None:
        """Close every native connection this handle opened.

        Registry entries stay in place; they are owned by the registry. If this
        handle was the last to open its file, the entry now holds a closed
        connection and a `backup` of another handle on the same file raises
        `BackupError` until a later connect registers a live one.
        """
        with self._lock:
            opened, self._opened = self._opened, []
            self._closed = True
        for conn in opened:
            conn.close()
        self._local = threading.local()


@dataclass
class OpenConfig:
    require_exists: bool = False
    query: str = ""
    hook: Hook | None = None
    driver: str = DEFAULT_DRIVER
    funcs: Iterable[FuncReg] = field(default_factory=tuple)

    def __post_init__(self):
        self.funcs = tuple(self.funcs)


def _prepare_file(dsn: str, require_exists: bool) -> None:
    filename = Path(paths.fs_path(dsn))
    if require_exists:
        if not filename.exists():
            raise FileNotFoundError(f"Database file not found: {filename}")
        return
    filename.parent.mkdir(parents=True, exist_ok=True)
    try:
        filename.touch(exist_ok=True)
    except OSError as e:
        raise OSError(f"os file: {dsn}, error: {e}") from e


def _open(dsn: str, config: OpenConfig, table: DriverTable) -> Database:
    driver = table.install(config.driver, config.query, config.hook, config.funcs)
    if not paths.is_memory(dsn):
        _prepare_file(dsn, config.require_exists)
    db = Database(dsn, driver, table)
    try:
        db.ping()
    except Exception:
        db.close()
        raise
    logger.debug(f"Opened {dsn} with driver '{driver.name}'")
    return db


def open_db(file: str | Path, *, drivers: DriverTable | None = None, **options) -> Database:
    """Open a database handle for `file`.

    Args:
        file: Path or DSN (`file:` URIs and `:memory:` accepted)
        drivers: Driver table to install into; defaults to the process-wide one
        **options: Fields of OpenConfig (require_exists, query, hook, driver, funcs)

    The handle is pinged before returning, so connect hook failures surface here.
    """
    return _open(str(file), OpenConfig(**options), _table(drivers))


def opener(*, drivers: DriverTable | None = None, **options) -> Callable[[str], Database]:
    """Bind open options once; returns `open(file) -> Database`."""
    config = OpenConfig(**options)

    def _opener(file: str | Path) -> Database:
        return _open(str(file), config, _table(drivers))

    return _opener


def close(db: Database) -> None:
    """Checkpoint the WAL then close. Errors are logged, not raised."""
    try:
        db.execute("PRAGMA wal_checkpoint(TRUNCATE)")
    except sqlite3.Error as e:
        logger.error(f"error executing WAL checkpoint: {e}")
    try:
        db.close()
    except sqlite3.Error as e:
        logger.error(f"error closing database: {e}")


def _table(table: DriverTable | None) -> DriverTable:
    return table if table is not None else drivers
