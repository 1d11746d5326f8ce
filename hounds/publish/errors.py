"""Typed errors and warnings for the publishing pipeline.

Fatal errors travel as ``Err(PublishError)`` and stop the run. Warnings are
collected into ``StageReport.warnings`` and never stop it. The split is by
type so callers and tests can branch on severity without string matching.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


# -----------------------------------------------------------------------------
# Fatal
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ConfigInvalid:
    problems: tuple[str, ...]
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class CredentialMissing:
    token_env: str
    token_file: str | None = None


@dataclass(frozen=True, slots=True)
class TargetNotProvisioned:
    """The platform does not know the package yet (recoverable by upload)."""

    package_name: str


@dataclass(frozen=True, slots=True)
class InvalidArtifact:
    path: Path
    reason: str
    rejected_by_platform: bool = False


@dataclass(frozen=True, slots=True)
class UploadFailed:
    path: Path
    reason: str


@dataclass(frozen=True, slots=True)
class MetadataInvalid:
    field: str
    reason: str


@dataclass(frozen=True, slots=True)
class ListingRejected:
    """The platform refused the listing text itself."""

    language: str
    diagnostic: str


@dataclass(frozen=True, slots=True)
class InvalidTrack:
    track: str


@dataclass(frozen=True, slots=True)
class GraphicsUploadFailed:
    image_type: str
    path: Path
    reason: str


@dataclass(frozen=True, slots=True)
class ValidationRejected:
    edit_id: str
    diagnostic: str


@dataclass(frozen=True, slots=True)
class CommitRejected:
    edit_id: str
    diagnostic: str


@dataclass(frozen=True, slots=True)
class ApiUnavailable:
    """Stage-level transport or authorization failure."""

    operation: str
    status: int
    reason: str


@dataclass(frozen=True, slots=True)
class SessionStoreFailed:
    path: Path
    reason: str


PublishError = (
    ConfigInvalid
    | CredentialMissing
    | TargetNotProvisioned
    | InvalidArtifact
    | UploadFailed
    | MetadataInvalid
    | ListingRejected
    | InvalidTrack
    | GraphicsUploadFailed
    | ValidationRejected
    | CommitRejected
    | ApiUnavailable
    | SessionStoreFailed
)


# -----------------------------------------------------------------------------
# Warnings
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ClassificationRejected:
    reason: str


@dataclass(frozen=True, slots=True)
class DistributionPartial:
    reason: str


@dataclass(frozen=True, slots=True)
class DetailsPartial:
    fields: tuple[str, ...]
    reason: str


@dataclass(frozen=True, slots=True)
class GraphicSkipped:
    image_type: str
    path: Path | None
    reason: str


@dataclass(frozen=True, slots=True)
class UnknownCategory:
    category: str


StageWarning = (
    ClassificationRejected | DistributionPartial | DetailsPartial | GraphicSkipped | UnknownCategory
)


def warning_message(warning: StageWarning) -> str:
    match warning:
        case ClassificationRejected(reason=reason):
            return f"content rating not set: {reason}"
        case DistributionPartial(reason=reason):
            return f"country availability not set: {reason}"
        case DetailsPartial(fields=fields, reason=reason):
            return f"{', '.join(fields)} not set: {reason}"
        case GraphicSkipped(image_type=image_type, path=path, reason=reason):
            where = f" ({path})" if path is not None else ""
            return f"{image_type} skipped{where}: {reason}"
        case UnknownCategory(category=category):
            return f"unknown category {category!r}; the platform may reject it"
