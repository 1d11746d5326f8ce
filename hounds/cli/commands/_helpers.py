"""Shared helpers for CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, NoReturn, TypeVar

import typer

from hounds.core.result import Err, Result
from hounds.output.errors import print_publish_error, publish_error_exit_code
from hounds.publish.api import PublishingApi, RestPublishingApi
from hounds.publish.auth import resolve_access_token
from hounds.publish.config_file import apply_overrides, load_publish_config
from hounds.publish.errors import PublishError
from hounds.publish.model import PublishConfig
from hounds.publish.session_store import SessionStore
from hounds.publish.sessions import EditSessionManager

if TYPE_CHECKING:
    from hounds.cli.context import CLIContext


T = TypeVar("T")


def exit_on_error(result: Result[T, PublishError], ctx: CLIContext) -> T:
    """Return the value of ``result`` or print the error and exit with its code."""
    if isinstance(result, Err):
        print_publish_error(result.error, ctx.console)
        raise typer.Exit(code=publish_error_exit_code(result.error))
    return result.value


def exit_with_code(code: int) -> NoReturn:
    """Exit with given code. Explicit helper for clarity."""
    raise typer.Exit(code=code)


def config_path(ctx: CLIContext, override: Path | None) -> Path:
    if override is not None:
        return override
    return ctx.cwd / ctx.settings.publish.config_path


def load_config(
    ctx: CLIContext,
    path: Path | None,
    *,
    artifact: Path | None = None,
    track: str | None = None,
) -> PublishConfig:
    loaded = load_publish_config(
        config_path(ctx, path), default_language=ctx.settings.publish.language
    )
    config = exit_on_error(loaded, ctx)
    return apply_overrides(config, artifact=artifact, track=track)


def build_api(ctx: CLIContext) -> PublishingApi:
    token = exit_on_error(resolve_access_token(ctx.settings.auth, base=ctx.cwd), ctx)
    return RestPublishingApi(ctx.settings.api, token)


def build_sessions(ctx: CLIContext, api: PublishingApi) -> EditSessionManager:
    return EditSessionManager(api=api, store=SessionStore(ctx.state_dir), console=ctx.console)
