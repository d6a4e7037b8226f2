"""Configuration loading from TOML files and environment variables."""

import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import SecretStr

from lapse.config.models import LapseConfig
from lapse.config.paths import get_config_path


def _get_default_config_paths() -> list[Path]:
    """Get ordered list of default config file locations."""
    return [
        Path("config.toml"),  # Current directory
        get_config_path(),  # ~/.lapse/config.toml (or LAPSE_HOME)
        Path("/etc/lapse/config.toml"),  # System-wide
    ]


def _resolve_env_secrets(config: dict[str, Any]) -> dict[str, Any]:
    """Fill secrets from environment variables where not set in config."""
    section = config.get("delivery")
    if section is None:
        section = {}
    if section.get("webhook_token") is None:
        if value := os.environ.get("LAPSE_WEBHOOK_TOKEN"):
            section["webhook_token"] = SecretStr(value)
            config["delivery"] = section

    resolver = config.get("resolver") or {}
    if resolver.get("rpc_url") is None:
        if value := os.environ.get("LAPSE_RPC_URL"):
            resolver["rpc_url"] = value
            config["resolver"] = resolver
    return config


def load_config(path: Path | None = None) -> LapseConfig:
    """Load configuration from TOML file.

    Args:
        path: Explicit path to config file. If None, searches default locations
            and falls back to defaults when none exists.

    Returns:
        Validated LapseConfig instance.

    Raises:
        FileNotFoundError: If an explicit path does not exist.
        pydantic.ValidationError: If the config file is invalid.
    """
    config_path: Path | None = None

    if path is not None:
        config_path = Path(path).expanduser()
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        for default_path in _get_default_config_paths():
            expanded = default_path.expanduser()
            if expanded.exists():
                config_path = expanded
                break

    raw_config: dict[str, Any] = {}
    if config_path is not None:
        with config_path.open("rb") as f:
            raw_config = tomllib.load(f)

    raw_config = _resolve_env_secrets(raw_config)
    return LapseConfig.model_validate(raw_config)


def get_default_config() -> LapseConfig:
    """Get a default configuration for development/testing."""
    return LapseConfig()
