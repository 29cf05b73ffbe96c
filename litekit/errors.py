class LiteError(Exception):
    """Base exception for litekit errors."""

    pass


class ConnectError(LiteError):
    """Raised when a connect hook step fails while establishing a connection."""

    pass


class RegistryError(LiteError):
    """Raised when no native connection is registered for a database file."""

    pass


class BackupError(LiteError):
    """Raised when an online backup step or its finalization fails."""

    pass


class ConfigError(LiteError):
    """Raised when the config file is malformed."""

    pass


class ScriptError(LiteError):
    """Raised when a script statement, directive or included file fails.

    Carries the offending statement text and the database file it ran against.
    """

    def __init__(self, message: str, statement: str = "", filename: str = ""):
        super().__init__(message)
        self.statement = statement
        self.filename = filename
