from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import typer

from hounds.core.config import SETTINGS_FILENAME, Settings, load_settings_or_default
from hounds.core.errors import ErrorCode
from hounds.core.result import Err
from hounds.output.console import ConsoleProtocol, RichConsole


@dataclass(frozen=True, slots=True)
class CLIContext:
    settings: Settings
    console: ConsoleProtocol
    cwd: Path

    @property
    def state_dir(self) -> Path:
        return self.settings.state_dir(self.cwd)


def build_context(settings_path: Path | None = None) -> CLIContext:
    cwd = Path.cwd()
    path = settings_path if settings_path is not None else cwd / SETTINGS_FILENAME

    if settings_path is not None and not settings_path.exists():
        typer.echo(f"error: settings file not found: {settings_path}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    loaded = load_settings_or_default(path)
    if isinstance(loaded, Err):
        typer.echo(f"error: {loaded.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    return CLIContext(settings=loaded.value, console=RichConsole(), cwd=cwd)
