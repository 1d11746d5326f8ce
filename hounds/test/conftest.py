from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from hounds.output.console import MockConsole
from hounds.publish.api import MockPublishingApi
from hounds.publish.model import (
    DistributionConfig,
    GraphicsConfig,
    ListingConfig,
    PublishConfig,
)
from hounds.publish.session_store import SessionStore
from hounds.publish.sessions import EditSessionManager

PACKAGE = "com.example.hounds"


class FrozenClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


@pytest.fixture
def package() -> str:
    return PACKAGE


@pytest.fixture
def advance_clock(clock: FrozenClock) -> Callable[[timedelta], None]:
    return clock.advance


@pytest.fixture
def console() -> MockConsole:
    return MockConsole()


@pytest.fixture
def api() -> MockPublishingApi:
    return MockPublishingApi(version_code=42)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2026, 3, 1, 12, 0, tzinfo=UTC))


@pytest.fixture
def store(tmp_path: Path) -> SessionStore:
    return SessionStore(tmp_path / ".hounds")


@pytest.fixture
def sessions(
    api: MockPublishingApi, store: SessionStore, console: MockConsole, clock: FrozenClock
) -> EditSessionManager:
    return EditSessionManager(api=api, store=store, console=console, clock=clock)


@pytest.fixture
def artifact(tmp_path: Path) -> Path:
    path = tmp_path / "app-release.aab"
    path.write_bytes(b"PK\x03\x04bundle")
    return path


@pytest.fixture
def listing() -> ListingConfig:
    return ListingConfig(
        title="Hounds",
        short_description="Release the hounds",
        full_description="A publishing pipeline for Android releases.",
        category="APPLICATION_PRODUCTIVITY",
        policy_url="https://example.com/privacy",
    )


@pytest.fixture
def make_config(
    artifact: Path, listing: ListingConfig
) -> Callable[..., PublishConfig]:
    def make(
        *,
        graphics: GraphicsConfig | None = None,
        distribution: DistributionConfig | None = None,
        **overrides: object,
    ) -> PublishConfig:
        config = PublishConfig(
            package_name=PACKAGE,
            artifact_path=artifact,
            listing=listing,
            graphics=graphics,
            distribution=distribution or DistributionConfig(),
        )
        if overrides:
            config = replace(config, **overrides)  # type: ignore[arg-type]
        return config

    return make


def write_images(directory: Path, *names: str) -> list[Path]:
    directory.mkdir(parents=True, exist_ok=True)
    paths: list[Path] = []
    for name in names:
        path = directory / name
        path.write_bytes(b"\x89PNG\r\n\x1a\n")
        paths.append(path)
    return paths


@pytest.fixture
def images() -> Callable[..., list[Path]]:
    return write_images
