"""Tests for litekit.store.connection: open logic and the Database handle."""

import sqlite3
import threading

import pytest

from litekit.store import close, open_db, opener


def test_open_creates_file_and_parent_dirs(tmp_path, drivers):
    target = tmp_path / "nested" / "dir" / "x.db"
    db = open_db(target, drivers=drivers)
    try:
        assert target.exists()
        assert db.filename == str(target.resolve())
    finally:
        db.close()


def test_require_exists_fails_for_missing_file(tmp_path, drivers):
    target = tmp_path / "missing" / "x.db"

    with pytest.raises(FileNotFoundError):
        open_db(target, drivers=drivers, require_exists=True)

    assert not target.parent.exists()


def test_require_exists_opens_existing_file(tmp_path, drivers):
    target = tmp_path / "x.db"
    sqlite3.connect(target).close()

    db = open_db(target, drivers=drivers, require_exists=True)
    try:
        assert db.filename == str(target.resolve())
    finally:
        db.close()


def test_file_uri_dsn(tmp_path, drivers, registry):
    target = tmp_path / "uri.db"
    db = open_db(f"file:{target}?mode=rwc", drivers=drivers)
    try:
        assert target.exists()
        assert registry.lookup(str(target)) is db.connection()
    finally:
        db.close()


def test_query_passes_columns_on_first_row_only(db):
    db.execute("CREATE TABLE t (a INTEGER, b TEXT)")
    for i in range(3):
        db.execute("INSERT INTO t VALUES (?, ?)", (i, f"v{i}"))

    calls = []
    db.query("SELECT a, b FROM t ORDER BY a", lambda cols, row: calls.append((cols, row)))

    assert calls == [(["a", "b"], (0, "v0")), (None, (1, "v1")), (None, (2, "v2"))]


def test_execute_returns_rowcount(db):
    db.execute("CREATE TABLE t (a)")
    db.execute("INSERT INTO t VALUES (1)")
    db.execute("INSERT INTO t VALUES (2)")

    assert db.execute("UPDATE t SET a = a + 1") == 2


def test_opener_binds_options(tmp_path, drivers):
    open_ro = opener(drivers=drivers, require_exists=True)

    with pytest.raises(FileNotFoundError):
        open_ro(tmp_path / "nope.db")


def test_each_thread_gets_its_own_connection(db, registry):
    main_conn = db.connection()
    other = {}

    def worker():
        other["conn"] = db.connection()

    t = threading.Thread(target=worker)
    t.start()
    t.join()

    assert other["conn"] is not main_conn
    # last connection opened on the file is the registered one
    assert registry.lookup(db.filename) is other["conn"]


def test_closed_handle_rejects_use(tmp_path, drivers):
    db = open_db(tmp_path / "x.db", drivers=drivers)
    db.close()

    with pytest.raises(sqlite3.ProgrammingError):
        db.connection()


def test_close_checkpoints_and_closes(tmp_path, drivers):
    db = open_db(tmp_path / "x.db", drivers=drivers, driver="wal", query="PRAGMA journal_mode=WAL")
    db.execute("CREATE TABLE t (a)")
    conn = db.connection()

    close(db)

    with pytest.raises(sqlite3.ProgrammingError):
        conn.execute("SELECT 1")


def test_close_twice_logs_instead_of_raising(tmp_path, drivers, caplog):
    db = open_db(tmp_path / "x.db", drivers=drivers)
    close(db)
    close(db)

    assert "WAL checkpoint" in caplog.text
