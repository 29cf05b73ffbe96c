"""Online backup of an open database through its registered native connection."""

import contextlib
import logging
import sqlite3
from pathlib import Path
from typing import TextIO

from litekit.errors import BackupError, RegistryError

from .connection import Database, open_db
from .registry import ConnectionRegistry

logger = logging.getLogger(__name__)

DEFAULT_STEP = 1024


class BackupSession:
    """One chunked copy from `source` to `dest`, `step` pages at a time.

    `pagecount` and `remaining` reflect the most recent step.
    """

    def __init__(
        self,
        source: sqlite3.Connection,
        dest: sqlite3.Connection,
        step: int = DEFAULT_STEP,
        out: TextIO | None = None,
    ):
        self.source = source
        self.dest = dest
        self.step = step
        self.out = out
        self.pagecount = 0
        self.remaining = 0
        self.steps = 0

    def _progress(self, status: int, remaining: int, total: int) -> None:
        self.pagecount = total
        self.remaining = remaining
        self.steps += 1
        if self.out is not None:
            print(f"pagecount: {total} remaining: {remaining}", file=self.out)

    def run(self) -> None:
        """Step until done. A failing step or finish raises BackupError.

        An exception raised by the output sink aborts the copy as well.
        """
        pages = self.step if self.step > 0 else -1
        try:
            self.source.backup(self.dest, pages=pages, progress=self._progress, name="main")
        except sqlite3.Error as e:
            raise BackupError(
                f"backup failed after {self.steps} steps ({self.remaining} pages remaining): {e}"
            ) from e
        logger.debug(f"Backup finished: {self.pagecount} pages in {self.steps} steps")


def _resolve(registry: ConnectionRegistry, db: Database) -> sqlite3.Connection:
    filename = db.filename
    conn = registry.lookup(filename)
    if conn is None:
        raise RegistryError(f"No native connection registered for {filename or db.dsn!r}")
    return conn


def _remove(dest: Path) -> None:
    for path in (dest, *(dest.with_name(dest.name + s) for s in ("-wal", "-shm", "-journal"))):
        with contextlib.suppress(OSError):
            path.unlink()


def backup(
    db: Database, dest: str | Path, step: int = DEFAULT_STEP, out: TextIO | None = None
) -> BackupSession:
    """Back up the open database `db` into a fresh file at `dest`.

    Args:
        db: Source handle; its native connection must be in the registry
        dest: Destination path, replaced if it exists
        step: Pages copied per step (<= 0 copies everything in one step)
        out: Sink for `pagecount: N remaining: M` progress lines

    The destination is opened with the default driver of the source's driver
    table so its connect hook registers it. A partial destination is left in
    place on failure.
    """
    dest = Path(dest)
    _remove(dest)

    dest_db = open_db(dest, drivers=db.drivers)
    try:
        registry = db.drivers.registry
        session = BackupSession(_resolve(registry, db), _resolve(registry, dest_db), step, out)
        logger.info(f"Backing up {db.filename} to {dest_db.filename}")
        session.run()
    finally:
        dest_db.close()
    return session
