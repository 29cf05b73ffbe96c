import pytest

from litekit import config
from litekit.store import ConnectionRegistry, DriverTable, open_db


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point config at a missing file so every test sees DEFAULTS."""
    monkeypatch.setenv("LITEKIT_CONFIG", str(tmp_path / "config.yaml"))
    config.clear_cache()
    yield
    config.clear_cache()


@pytest.fixture
def registry():
    """Fresh connection registry, not shared with the process-wide default."""
    return ConnectionRegistry()


@pytest.fixture
def drivers(registry):
    """Driver table bound to the per-test registry."""
    return DriverTable(registry)


@pytest.fixture
def open_test_db(tmp_path, drivers):
    """Open databases under tmp_path; all handles are closed on teardown."""
    handles = []

    def _open(name: str = "test.db", **options):
        db = open_db(tmp_path / name, drivers=drivers, **options)
        handles.append(db)
        return db

    yield _open

    for db in handles:
        db.close()


@pytest.fixture
def db(open_test_db):
    return open_test_db()
