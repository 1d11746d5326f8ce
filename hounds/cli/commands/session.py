"""Manual recovery for the locally recorded edit of a package."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

import typer

from hounds.cli.commands._helpers import build_api, build_sessions, exit_on_error, exit_with_code
from hounds.cli.context import CLIContext, build_context
from hounds.core.errors import ErrorCode
from hounds.output.console import Style
from hounds.publish.model import EditSession
from hounds.publish.session_store import SessionStore
from hounds.publish.sessions import EditSessionManager, is_expired

session_app = typer.Typer(add_completion=False, no_args_is_help=True)


def _age(session: EditSession) -> str:
    minutes = int((datetime.now(tz=UTC) - session.created_at).total_seconds() // 60)
    return f"{minutes} min"


def _show_one(ctx: CLIContext, session: EditSession) -> None:
    expired = is_expired(session, now=datetime.now(tz=UTC))
    style = Style.WARNING if expired else Style.SUCCESS
    state = "expired" if expired else "open"
    ctx.console.print(f"{session.package_name}: {session.edit_id} ({state})", style)
    ctx.console.print(
        f"  created {session.created_at.isoformat()} ({_age(session)} ago)", Style.DIM
    )


def _recorded(ctx: CLIContext, sessions: EditSessionManager, package: str) -> EditSession:
    session = exit_on_error(sessions.current(package), ctx)
    if session is None:
        ctx.console.error(f"no recorded edit for {package}")
        ctx.console.print("hint: run `hounds publish` to open one", Style.DIM)
        exit_with_code(int(ErrorCode.USER_ERROR))
    if sessions.is_expired(session):
        ctx.console.error(f"edit {session.edit_id} has expired")
        ctx.console.print(
            f"hint: run `hounds session discard {package}` then `hounds publish`", Style.DIM
        )
        exit_with_code(int(ErrorCode.USER_ERROR))
    return session


@session_app.command("show")
def show(
    package: str | None = typer.Argument(None, help="Package name (default: all)"),
    settings: Path | None = typer.Option(None, "--settings", help="Path to hounds.toml"),
) -> None:
    """Show recorded edits."""
    ctx = build_context(settings)
    store = SessionStore(ctx.state_dir)

    if package is not None:
        session = exit_on_error(store.load(package), ctx)
        if session is None:
            ctx.console.print(f"no recorded edit for {package}", Style.DIM)
            return
        _show_one(ctx, session)
        return

    recorded = exit_on_error(store.list_sessions(), ctx)
    if not recorded:
        ctx.console.print("no recorded edits", Style.DIM)
        return
    for session in recorded:
        _show_one(ctx, session)


@session_app.command("discard")
def discard(
    package: str = typer.Argument(..., help="Package name"),
    settings: Path | None = typer.Option(None, "--settings", help="Path to hounds.toml"),
) -> None:
    """Forget the recorded edit. The platform expires it on its own."""
    ctx = build_context(settings)
    removed = exit_on_error(SessionStore(ctx.state_dir).clear(package), ctx)
    if removed:
        ctx.console.success(f"discarded recorded edit for {package}")
    else:
        ctx.console.print(f"no recorded edit for {package}", Style.DIM)


@session_app.command("validate")
def validate(
    package: str = typer.Argument(..., help="Package name"),
    settings: Path | None = typer.Option(None, "--settings", help="Path to hounds.toml"),
) -> None:
    """Ask the platform to validate the recorded edit."""
    ctx = build_context(settings)
    api = build_api(ctx)
    sessions = build_sessions(ctx, api)

    session = _recorded(ctx, sessions, package)
    exit_on_error(sessions.validate(package, session.edit_id), ctx)


@session_app.command("commit")
def commit(
    package: str = typer.Argument(..., help="Package name"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    settings: Path | None = typer.Option(None, "--settings", help="Path to hounds.toml"),
) -> None:
    """Validate, then commit the recorded edit (publishes it)."""
    ctx = build_context(settings)
    api = build_api(ctx)
    sessions = build_sessions(ctx, api)

    session = _recorded(ctx, sessions, package)
    exit_on_error(sessions.validate(package, session.edit_id), ctx)

    if not yes and not typer.confirm(f"Commit edit {session.edit_id} for {package}?"):
        ctx.console.print("aborted", Style.DIM)
        exit_with_code(int(ErrorCode.USER_ERROR))

    exit_on_error(sessions.commit(package, session.edit_id), ctx)
