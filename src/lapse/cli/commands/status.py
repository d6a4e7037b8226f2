"""Status command: look up a name's expiry from the configured resolver."""

from pathlib import Path
from typing import Annotated

import typer

from lapse.cli.console import console


def register(app: typer.Typer) -> None:
    """Register the status command."""

    @app.command()
    def status(
        name: Annotated[str, typer.Argument(help="Name to check, e.g. vitalik.eth")],
        config: Annotated[
            Path | None,
            typer.Option("--config", "-c", help="Path to configuration file"),
        ] = None,
    ) -> None:
        """Show when a name expires."""
        import asyncio

        from lapse.config import load_config
        from lapse.service import ReminderService

        service = ReminderService(load_config(config))
        console.print(asyncio.run(service.commands.check_status(name)))
