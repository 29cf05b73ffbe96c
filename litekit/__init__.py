"""Convenience layer over sqlite3: handles, connect hooks, online backup, scripts."""

from litekit.errors import BackupError, ConfigError, ConnectError, LiteError, RegistryError, ScriptError
from litekit.functions import IP_FUNCS
from litekit.script import ScriptRunner, commands, run_file
from litekit.store import (
    DEFAULT_DRIVER,
    Database,
    DriverTable,
    FuncReg,
    backup,
    close,
    open_db,
    opener,
)

__version__ = "0.1.0"

__all__ = [
    "open_db",
    "opener",
    "close",
    "backup",
    "commands",
    "run_file",
    "ScriptRunner",
    "Database",
    "DriverTable",
    "FuncReg",
    "DEFAULT_DRIVER",
    "IP_FUNCS",
    "LiteError",
    "ConnectError",
    "RegistryError",
    "BackupError",
    "ScriptError",
    "ConfigError",
]
