from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import pytest

from hounds.cli.context import CLIContext
from hounds.core.config import Settings
from hounds.output.console import MockConsole


@pytest.fixture
def ctx(tmp_path: Path) -> CLIContext:
    return CLIContext(settings=Settings(), console=MockConsole(), cwd=tmp_path)


@pytest.fixture
def write_config(ctx: CLIContext, package: str) -> Callable[..., Path]:
    """Write ``publish-config.json`` and its artifact into the context's cwd."""

    def write(**overrides: object) -> Path:
        (ctx.cwd / "app-release.aab").write_bytes(b"PK\x03\x04bundle")
        payload: dict[str, object] = {
            "releaseTargetId": package,
            "artifactPath": "app-release.aab",
            "listing": {
                "title": "Hounds",
                "shortDescription": "Release the hounds",
                "fullDescription": "A publishing pipeline for Android releases.",
                "category": "APPLICATION_PRODUCTIVITY",
                "policyUrl": "https://example.com/privacy",
            },
        }
        payload.update(overrides)
        path = ctx.cwd / "publish-config.json"
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    return write
