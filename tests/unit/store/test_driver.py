"""Tests for litekit.store.driver: connect hook steps and driver installation."""

import io
import logging
import sqlite3
import threading

import pytest

from litekit.errors import ConnectError
from litekit.store import Driver, FuncReg, backup, open_db


def _one(*_args):
    return 1


def test_install_is_idempotent(drivers):
    first = drivers.install("custom", query="SELECT 1")
    second = drivers.install("custom", query="SELECT 2")

    assert first is second
    assert second.query == "SELECT 1"
    assert drivers.names() == ["custom"]


def test_install_warns_on_differing_config(drivers, caplog):
    drivers.install("custom", query="SELECT 1")
    with caplog.at_level(logging.WARNING, logger="litekit.store.driver"):
        drivers.install("custom", query="SELECT 2")

    assert "already installed" in caplog.text


def test_install_same_config_is_silent(drivers, caplog):
    drivers.install("custom", query="SELECT 1")
    with caplog.at_level(logging.WARNING, logger="litekit.store.driver"):
        drivers.install("custom", query="SELECT 1")

    assert caplog.text == ""


def test_first_init_query_wins(open_test_db):
    """Only the first query configured for a driver name runs on new connections."""
    first = (
        "CREATE TABLE IF NOT EXISTS marks (q TEXT);"
        "INSERT INTO marks VALUES ('first');"
    )
    second = (
        "CREATE TABLE IF NOT EXISTS marks (q TEXT);"
        "INSERT INTO marks VALUES ('second');"
    )
    open_test_db("m.db", driver="marked", query=first)
    db = open_test_db("m.db", driver="marked", query=second)

    rows = [r[0] for r in db.connection().execute("SELECT q FROM marks")]
    assert rows == ["first", "first"]


def test_arity_from_signature():
    def two(a, b):
        return a

    def many(*args):
        return 0

    assert FuncReg("two", two).arity() == 2
    assert FuncReg("many", many).arity() == -1
    assert FuncReg("fixed", many, narg=3).arity() == 3


def test_functions_registered_on_connect(open_test_db):
    db = open_test_db(driver="funcs", funcs=[FuncReg("double", lambda x: x * 2)])

    assert db.query_row("SELECT double(21)")[0] == 42


def test_function_registration_failure_names_function(open_test_db, registry):
    with pytest.raises(ConnectError, match="'broken'"):
        open_test_db(driver="bad", funcs=[FuncReg("broken", _one, narg=-5)])

    assert len(registry) == 0


def test_file_connection_registered(db, registry):
    assert registry.lookup(db.filename) is db.connection()


def test_memory_connection_not_registered(drivers, registry):
    db = open_db(":memory:", drivers=drivers)
    try:
        assert db.filename == ""
        assert len(registry) == 0
    finally:
        db.close()


def test_init_query_failure_aborts_open(open_test_db, registry):
    with pytest.raises(ConnectError, match="NOT VALID SQL"):
        open_test_db(driver="badquery", query="NOT VALID SQL")

    assert len(registry) == 0


def test_hook_runs_after_query_with_connection(open_test_db):
    seen = []

    def hook(conn):
        seen.append(conn.execute("SELECT count(*) FROM seeded").fetchone()[0])

    db = open_test_db(driver="hooked", query="CREATE TABLE IF NOT EXISTS seeded (x)", hook=hook)

    assert seen == [0]
    assert db.connection() is not None


def test_hook_failure_aborts_open(open_test_db, registry):
    def hook(conn):
        raise RuntimeError("nope")

    with pytest.raises(ConnectError, match="nope"):
        open_test_db(driver="failhook", hook=hook)

    assert len(registry) == 0


def test_identify_failure_includes_connection(registry):
    conn = sqlite3.connect(":memory:")
    conn.close()

    with pytest.raises(ConnectError, match="couldn't get filename for connection"):
        Driver("x", registry=registry)._identify(conn)


def test_failed_connect_keeps_existing_entry(open_test_db, registry, tmp_path):
    live = open_test_db("shared.db")
    live.execute("CREATE TABLE kept (x)")
    native = live.connection()

    with pytest.raises(ConnectError):
        open_test_db("shared.db", driver="broken", query="NOT SQL")

    assert registry.lookup(str(tmp_path / "shared.db")) is native
    backup(live, tmp_path / "copy.db", out=io.StringIO())
    copy = sqlite3.connect(tmp_path / "copy.db")
    try:
        assert copy.execute("SELECT name FROM sqlite_master").fetchall() == [("kept",)]
    finally:
        copy.close()


def test_concurrent_install_yields_one_driver(drivers):
    barrier = threading.Barrier(8)
    installed = []

    def worker(n):
        barrier.wait()
        installed.append(drivers.install("racy", query=f"SELECT {n}"))

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(installed) == 8
    assert len({id(d) for d in installed}) == 1
    assert installed[0].query in {f"SELECT {n}" for n in range(8)}
    assert drivers.get("racy") is installed[0]
