"""Database handles, drivers, the connection registry and online backups."""

from litekit.store.backup import DEFAULT_STEP, BackupSession, backup
from litekit.store.connection import Database, OpenConfig, RowHandler, close, open_db, opener
from litekit.store.driver import DEFAULT_DRIVER, Driver, DriverTable, FuncReg, Hook, drivers
from litekit.store.pragmas import PRAGMAS, compile_options, data_version, pragma, pragmas, version
from litekit.store.registry import ConnectionRegistry, registry

__all__ = [
    "open_db",
    "opener",
    "close",
    "Database",
    "OpenConfig",
    "RowHandler",
    "Driver",
    "DriverTable",
    "FuncReg",
    "Hook",
    "DEFAULT_DRIVER",
    "drivers",
    "ConnectionRegistry",
    "registry",
    "backup",
    "BackupSession",
    "DEFAULT_STEP",
    "PRAGMAS",
    "pragma",
    "pragmas",
    "compile_options",
    "data_version",
    "version",
]
