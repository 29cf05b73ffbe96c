import logging
import sqlite3
from typing import TextIO

from .connection import Database

logger = logging.getLogger(__name__)

# Single-value pragmas only. Left out because they touch other databases or
# return several columns: collation_list, database_list, foreign_key_check,
# foreign_key_list, quick_check, wal_checkpoint.
PRAGMAS = (
    "application_id",
    "auto_vacuum",
    "automatic_index",
    "busy_timeout",
    "cache_size",
    "cache_spill",
    "cell_size_check",
    "checkpoint_fullfsync",
    "compile_options",
    "data_version",
    "defer_foreign_keys",
    "encoding",
    "foreign_keys",
    "freelist_count",
    "fullfsync",
    "journal_mode",
    "journal_size_limit",
    "legacy_file_format",
    "locking_mode",
    "max_page_count",
    "mmap_size",
    "page_count",
    "page_size",
    "query_only",
    "read_uncommitted",
    "recursive_triggers",
    "reverse_unordered_selects",
    "schema_version",
    "secure_delete",
    "soft_heap_limit",
    "synchronous",
    "temp_store",
    "threads",
    "user_version",
    "wal_autocheckpoint",
)


def pragma(db: Database, name: str) -> str:
    """Current value of a single pragma as text, "" if it yields nothing."""
    row = db.query_row(f"PRAGMA {name}")
    if row is None or row[0] is None:
        return ""
    return str(row[0])


def pragmas(db: Database, out: TextIO) -> None:
    """Write `pragma <name> = <value>` for every pragma in PRAGMAS."""
    for name in PRAGMAS:
        try:
            value = pragma(db, name)
        except sqlite3.Error as e:
            logger.debug(f"pragma {name} unavailable: {e}")
            value = ""
        print(f"pragma {name} = {value}", file=out)


def compile_options(db: Database, out: TextIO) -> None:
    """Write every compile-time option, one per line."""
    try:
        rows = db.connection().execute("PRAGMA compile_options").fetchall()
    except sqlite3.Error as e:
        logger.error(f"can't get compiled options: {e}")
        return
    for row in rows:
        print(row[0], file=out)


def data_version(db: Database) -> int:
    return db.query_row("PRAGMA data_version")[0]


def version() -> tuple[str, int, str]:
    """Return (library version, version number, source id) of the linked SQLite."""
    major, minor, patch = sqlite3.sqlite_version_info
    conn = sqlite3.connect(":memory:")
    try:
        source_id = conn.execute("SELECT sqlite_source_id()").fetchone()[0]
    finally:
        conn.close()
    return sqlite3.sqlite_version, major * 1_000_000 + minor * 1_000 + patch, source_id
