from __future__ import annotations

import typer

from hounds import __version__
from hounds.cli.commands.config_cmd import init_config
from hounds.cli.commands.publish import check, publish
from hounds.cli.commands.session import session_app


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Commands
app.command()(publish)
app.command()(check)
app.command("init-config")(init_config)

# Sub-apps
app.add_typer(session_app, name="session", help="Inspect or finish a recorded edit.")


def _print_version(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False, "--version", callback=_print_version, is_eager=True, help="Show version and exit."
    ),
) -> None:
    """Publish Android releases through the Play publishing API."""


def main() -> None:
    app()
