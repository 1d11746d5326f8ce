from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Literal

from hounds.publish.errors import StageWarning

ArtifactKind = Literal["bundle", "apk"]
Track = Literal["internal", "alpha", "beta", "production"]
DeviceClass = Literal["phone", "tablet", "tablet-10", "tv", "wear"]

TRACKS: tuple[Track, ...] = ("internal", "alpha", "beta", "production")

ARTIFACT_SUFFIXES: dict[str, ArtifactKind] = {
    ".aab": "bundle",
    ".apk": "apk",
}


@dataclass(frozen=True, slots=True)
class EditSession:
    """A platform-side edit transaction tracked locally for one package."""

    edit_id: str
    package_name: str
    created_at: datetime


@dataclass(frozen=True, slots=True)
class UploadedArtifact:
    version_code: int
    version_name: str | None
    sha1: str | None
    kind: ArtifactKind


@dataclass(frozen=True, slots=True)
class ListingConfig:
    title: str
    short_description: str
    full_description: str
    category: str
    policy_url: str


@dataclass(frozen=True, slots=True)
class GraphicsConfig:
    screenshots_dir: Path | None = None
    icon: Path | None = None
    feature_graphic: Path | None = None


@dataclass(frozen=True, slots=True)
class DataSafety:
    collects_personal_data: bool = False
    shares_personal_data: bool = False
    collects_location: bool = False


@dataclass(frozen=True, slots=True)
class ComplianceConfig:
    is_gambling_app: bool = False
    is_financial_app: bool = False
    is_health_app: bool = False
    target_age_group: str | None = None
    contains_violence: bool = False
    contains_sexual_content: bool = False
    contains_drugs: bool = False
    data_safety: DataSafety = field(default_factory=DataSafety)


@dataclass(frozen=True, slots=True)
class PricingConfig:
    free: bool = True
    price: str | None = None  # major units as written in the config, e.g. "1.99"
    currency: str | None = None


@dataclass(frozen=True, slots=True)
class DistributionConfig:
    track: str = "internal"
    pricing: PricingConfig = field(default_factory=PricingConfig)
    # "all" or explicit region codes
    countries: Literal["all"] | tuple[str, ...] = "all"
    release_notes: str | None = None


@dataclass(frozen=True, slots=True)
class PublishConfig:
    """Everything a single release run needs, loaded once and never mutated."""

    package_name: str
    artifact_path: Path
    listing: ListingConfig
    language: str = "en-US"
    graphics: GraphicsConfig | None = None
    compliance: ComplianceConfig | None = None
    distribution: DistributionConfig = field(default_factory=DistributionConfig)
    source: Path | None = None


@dataclass(frozen=True, slots=True)
class StageReport:
    """Outcome of a stage that did not fail fatally."""

    stage: str
    warnings: tuple[StageWarning, ...] = ()

    @property
    def clean(self) -> bool:
        return not self.warnings
