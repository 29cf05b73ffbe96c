from functools import lru_cache

import yaml

from . import paths
from .errors import ConfigError

DEFAULTS = {
    "driver": "sqlite",
    "query": "",
    "require_exists": False,
    "backup_step": 1024,
    "echo": False,
    "debug": False,
}

_TYPES = {
    "driver": str,
    "query": str,
    "require_exists": bool,
    "backup_step": int,
    "echo": bool,
    "debug": bool,
}


def _validate_config(cfg: dict) -> None:
    """Validate config structure. Fail fast on invalid types."""
    if not isinstance(cfg, dict):
        raise ConfigError(f"Config must be a mapping, got {type(cfg).__name__}")

    for key, value in cfg.items():
        expected = _TYPES.get(key)
        if expected is None:
            raise ConfigError(f"Unknown config key '{key}'")
        # bool is an int subclass; keep them apart
        if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
            raise ConfigError(f"Config '{key}' must be {expected.__name__}")


def clear_cache():
    load_config.cache_clear()


@lru_cache(maxsize=1)
def load_config() -> dict:
    """Load config.yaml merged over DEFAULTS; DEFAULTS alone if the file is missing."""
    path = paths.config_file()
    if not path.exists():
        return dict(DEFAULTS)
    with open(path) as f:
        cfg = yaml.safe_load(f) or {}
    _validate_config(cfg)
    return {**DEFAULTS, **cfg}
