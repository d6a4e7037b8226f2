"""Configuration commands."""

from pathlib import Path
from typing import Annotated

import click
import typer

from lapse.cli.console import console, create_table, error, success


def register(app: typer.Typer) -> None:
    """Register the config command."""

    @app.command()
    def config(
        action: Annotated[
            str | None,
            typer.Argument(help="Action: show, validate"),
        ] = None,
        path: Annotated[
            Path | None,
            typer.Option(
                "--path",
                "-p",
                help="Path to config file (default: $LAPSE_HOME/config.toml)",
            ),
        ] = None,
    ) -> None:
        """Inspect configuration."""
        if action is None:
            ctx = click.get_current_context()
            click.echo(ctx.get_help())
            raise typer.Exit(0)

        if action not in ("show", "validate"):
            error(f"Unknown action: {action}")
            console.print("Valid actions: show, validate")
            raise typer.Exit(1)

        import tomllib

        from pydantic import ValidationError

        from lapse.config import load_config

        try:
            config_obj = load_config(path)
        except FileNotFoundError as e:
            error(str(e))
            raise typer.Exit(1) from None
        except tomllib.TOMLDecodeError as e:
            error(f"Invalid TOML: {e}")
            raise typer.Exit(1) from None
        except ValidationError as e:
            error("Configuration validation failed:")
            console.print()
            for err in e.errors():
                loc = ".".join(str(x) for x in err["loc"])
                console.print(f"  [yellow]{loc}[/yellow]: {err['msg']}")
            raise typer.Exit(1) from None

        if action == "validate":
            success("Configuration is valid!")
            return

        reminders = config_obj.reminders
        table = create_table(
            "Configuration", [("Setting", "cyan"), ("Value", "green")]
        )
        table.add_row("Intervals", ", ".join(f"{d}d" for d in reminders.intervals))
        table.add_row("Post-expiry tag", reminders.post_expiry_tag)
        table.add_row("Job", f"{reminders.job_name} ({reminders.cron})")
        table.add_row("Timezone", reminders.timezone)
        table.add_row(
            "Scheduler",
            f"every {config_obj.scheduler.poll_interval}s"
            if config_obj.scheduler.enabled
            else "[dim]disabled[/dim]",
        )
        table.add_row("Delivery", config_obj.delivery.backend)
        table.add_row("Resolver", config_obj.resolver.backend)
        table.add_row(
            "Server", f"{config_obj.server.host}:{config_obj.server.port}"
        )
        table.add_row("Static expiries", str(len(config_obj.expiries)))
        console.print(table)
