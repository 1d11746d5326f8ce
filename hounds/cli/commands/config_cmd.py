from __future__ import annotations

from pathlib import Path

import typer

from hounds.cli.commands._helpers import config_path, exit_on_error
from hounds.cli.context import build_context
from hounds.output.console import Style
from hounds.publish.config_file import write_template


def init_config(
    out: Path | None = typer.Option(
        None, "--out", "-o", help="Where to write (default: publish-config.json)"
    ),
    package: str | None = typer.Option(None, "--package", "-p", help="Package name"),
    title: str | None = typer.Option(None, "--title", help="Store listing title"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
    settings: Path | None = typer.Option(None, "--settings", help="Path to hounds.toml"),
) -> None:
    """Write a template publish configuration."""
    ctx = build_context(settings)
    target = config_path(ctx, out)

    written = exit_on_error(write_template(target, package=package, title=title, force=force), ctx)
    ctx.console.success(f"wrote {written}")
    ctx.console.print("hint: edit it, then run `hounds check`", Style.DIM)
