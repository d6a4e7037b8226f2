"""Serve command."""

from pathlib import Path
from typing import Annotated

import typer


def register(app: typer.Typer) -> None:
    """Register the serve command."""

    @app.command()
    def serve(
        config: Annotated[
            Path | None,
            typer.Option("--config", "-c", help="Path to configuration file"),
        ] = None,
        host: Annotated[
            str | None,
            typer.Option("--host", "-h", help="Host to bind to"),
        ] = None,
        port: Annotated[
            int | None,
            typer.Option("--port", "-p", help="Port to bind to"),
        ] = None,
    ) -> None:
        """Start the reminder server."""
        import uvicorn

        from lapse.config import load_config
        from lapse.logging import configure_logging
        from lapse.server import create_app
        from lapse.service import ReminderService

        configure_logging(use_rich=True, log_to_file=True)

        config_obj = load_config(config)
        app_obj = create_app(ReminderService(config_obj))
        uvicorn.run(
            app_obj,
            host=host or config_obj.server.host,
            port=port or config_obj.server.port,
            log_config=None,  # Use shared logging config, not uvicorn's
        )
