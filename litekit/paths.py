import os
from pathlib import Path


def dot_dir() -> Path:
    return Path.home() / ".litekit"


def config_file() -> Path:
    """Return the config file path, honouring LITEKIT_CONFIG."""
    override = os.environ.get("LITEKIT_CONFIG")
    if override:
        return Path(override).expanduser()
    return dot_dir() / "config.yaml"


def fs_path(dsn: str) -> str:
    """Strip URI decoration from a DSN, leaving the filesystem path.

    `file://data/x.db?mode=rwc` becomes `data/x.db`.
    """
    path = dsn.removeprefix("file:").removeprefix("//")
    i = path.find("?")
    if i > 0:
        path = path[:i]
    return path


def is_memory(dsn: str) -> bool:
    return ":memory:" in dsn or dsn == ""


def canonical(path: str) -> str:
    """Absolute, symlink-resolved form of a database path ("" stays "")."""
    if not path or is_memory(path):
        return ""
    return os.path.realpath(path)
