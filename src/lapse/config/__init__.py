"""Configuration module."""

from lapse.config.loader import get_default_config, load_config
from lapse.config.models import (
    ConfigError,
    DeliveryConfig,
    LapseConfig,
    ReminderConfig,
    ResolverConfig,
    SchedulerConfig,
    ServerConfig,
)
from lapse.config.paths import get_config_path, get_lapse_home, get_logs_path

__all__ = [
    "ConfigError",
    "DeliveryConfig",
    "LapseConfig",
    "ReminderConfig",
    "ResolverConfig",
    "SchedulerConfig",
    "ServerConfig",
    "get_config_path",
    "get_default_config",
    "get_lapse_home",
    "get_logs_path",
    "load_config",
]
