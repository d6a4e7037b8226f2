"""HTTP server for Lapse."""

from lapse.server.app import LapseServer, create_app

__all__ = [
    "LapseServer",
    "create_app",
]
