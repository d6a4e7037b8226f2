"""Main CLI application."""

import typer

from lapse.cli.commands import config, serve, status

app = typer.Typer(
    name="lapse",
    help="Lapse - expiration reminder service",
    no_args_is_help=True,
)

serve.register(app)
config.register(app)
status.register(app)


if __name__ == "__main__":
    app()
