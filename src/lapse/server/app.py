"""FastAPI application for the Lapse server."""

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from lapse.server.routes import cron, health, reminders

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from lapse.service import ReminderService

logger = logging.getLogger(__name__)


class LapseServer:
    """Main server application.

    Owns the FastAPI app and ties the reminder service lifecycle to the
    app's startup and shutdown.
    """

    def __init__(self, service: "ReminderService"):
        self._service = service
        self._app = self._create_app()

    @property
    def app(self) -> FastAPI:
        return self._app

    @property
    def service(self) -> "ReminderService":
        return self._service

    def _create_app(self) -> FastAPI:
        @asynccontextmanager
        async def lifespan(app: FastAPI) -> "AsyncIterator[None]":
            logger.info("server_starting")
            await self._service.initialize()
            yield
            logger.info("server_shutting_down")
            await self._service.shutdown()

        app = FastAPI(
            title="Lapse",
            description="Expiration reminder service",
            version="0.1.0",
            lifespan=lifespan,
        )
        app.state.server = self
        app.state.service = self._service

        app.include_router(health.router, tags=["health"])
        app.include_router(cron.router, prefix="/cron", tags=["cron"])
        app.include_router(reminders.router, tags=["reminders"])
        return app


def create_app(service: "ReminderService") -> FastAPI:
    """Create the FastAPI application."""
    return LapseServer(service).app
