"""Centralized path management for Lapse.

All local state (config, logs) lives under a single base directory, which can
be overridden with the LAPSE_HOME environment variable.

Default location: ~/.lapse
"""

import os
from functools import lru_cache
from pathlib import Path

ENV_VAR = "LAPSE_HOME"


@lru_cache(maxsize=1)
def get_lapse_home() -> Path:
    """Get the base directory for all Lapse data.

    Resolution order:
    1. LAPSE_HOME environment variable (if set)
    2. ~/.lapse
    """
    if env_home := os.environ.get(ENV_VAR):
        return Path(env_home).expanduser().resolve()
    return Path.home() / ".lapse"


def get_config_path() -> Path:
    """Get the default config file path."""
    return get_lapse_home() / "config.toml"


def get_logs_path() -> Path:
    """Get the JSONL log directory."""
    return get_lapse_home() / "logs"
