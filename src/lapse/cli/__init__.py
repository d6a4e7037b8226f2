"""Command-line interface."""

from lapse.cli.app import app

__all__ = ["app"]
