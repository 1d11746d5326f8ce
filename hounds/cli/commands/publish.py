from __future__ import annotations

from pathlib import Path

import typer

from hounds.cli.commands._helpers import (
    build_api,
    build_sessions,
    exit_on_error,
    exit_with_code,
    load_config,
)
from hounds.cli.context import CLIContext, build_context
from hounds.output.console import Style
from hounds.output.errors import (
    print_publish_error,
    print_stage_warning,
    publish_error_exit_code,
)
from hounds.publish.orchestrator import PublishOrchestrator, PublishOutcome, preflight


def publish(
    config: Path | None = typer.Option(
        None, "--config", "-c", help="Publish configuration (default: publish-config.json)"
    ),
    artifact: Path | None = typer.Option(
        None, "--artifact", "-a", help="Override the artifact path (.aab or .apk)"
    ),
    track: str | None = typer.Option(
        None, "--track", "-t", help="Override the track (internal, alpha, beta, production)"
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Open or resume the edit, then print what would be done"
    ),
    settings: Path | None = typer.Option(None, "--settings", help="Path to hounds.toml"),
) -> None:
    """Upload, describe, distribute and commit one release."""
    ctx = build_context(settings)
    cfg = load_config(ctx, config, artifact=artifact, track=track)

    api = build_api(ctx)
    orchestrator = PublishOrchestrator(
        api=api,
        sessions=build_sessions(ctx, api),
        console=ctx.console,
        max_upload_workers=ctx.settings.publish.max_upload_workers,
        allow_implicit_target_creation=ctx.settings.publish.allow_implicit_target_creation,
    )

    ctx.console.header(f"Publishing {cfg.package_name} to {cfg.distribution.track}")
    if dry_run:
        ctx.console.print("DRY-RUN", Style.WARNING)

    outcome = orchestrator.run(cfg, dry_run=dry_run)
    _report(ctx, outcome, dry_run=dry_run)


def _report(ctx: CLIContext, outcome: PublishOutcome, *, dry_run: bool) -> None:
    console = ctx.console
    console.newline()

    if outcome.warnings:
        console.header("Warnings")
        for warning in outcome.warnings:
            print_stage_warning(warning, console)

    if outcome.error is not None:
        console.header("Failed")
        print_publish_error(outcome.error, console)
        console.print(f"stage: {outcome.failed_stage} (state: {outcome.state})", Style.DIM)
        if outcome.edit_id is not None:
            console.print(f"edit {outcome.edit_id} kept for resume", Style.DIM)
        exit_with_code(publish_error_exit_code(outcome.error))

    if dry_run:
        console.header("Would do")
        for action in outcome.planned:
            console.print(f"  {action}")
        console.print("Use without --dry-run to execute", Style.DIM)
        return

    console.success(
        f"{outcome.package_name}: version {outcome.version_code} committed (edit {outcome.edit_id})"
    )


def check(
    config: Path | None = typer.Option(
        None, "--config", "-c", help="Publish configuration (default: publish-config.json)"
    ),
    artifact: Path | None = typer.Option(None, "--artifact", "-a", help="Override artifact path"),
    track: str | None = typer.Option(None, "--track", "-t", help="Override the track"),
    settings: Path | None = typer.Option(None, "--settings", help="Path to hounds.toml"),
) -> None:
    """Validate the publish configuration and artifact locally (no network)."""
    ctx = build_context(settings)
    cfg = load_config(ctx, config, artifact=artifact, track=track)

    warnings = exit_on_error(preflight(cfg), ctx)
    for warning in warnings:
        print_stage_warning(warning, ctx.console)

    ctx.console.print(f"package: {cfg.package_name}", Style.DIM)
    ctx.console.print(f"artifact: {cfg.artifact_path}", Style.DIM)
    ctx.console.print(f"track: {cfg.distribution.track}", Style.DIM)
    ctx.console.success("preflight passed")
