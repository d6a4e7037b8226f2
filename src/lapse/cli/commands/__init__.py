"""CLI command modules."""

from lapse.cli.commands import config, serve, status

__all__ = [
    "config",
    "serve",
    "status",
]
