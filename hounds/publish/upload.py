"""Binary upload stage.

Uploading the first binary is how the platform creates an app: there is no
"create app" call. This stage is therefore the only one allowed to run without
an open edit, and the only one that may cause a release target to exist.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from hounds.core.result import Err, Ok, Result
from hounds.core.structured import StrDict, get_str
from hounds.output.console import ConsoleProtocol, Style
from hounds.publish.api import PublishingApi
from hounds.publish.errors import InvalidArtifact, PublishError, TargetNotProvisioned, UploadFailed
from hounds.publish.model import ARTIFACT_SUFFIXES, ArtifactKind, EditSession, UploadedArtifact
from hounds.publish.sessions import EditSessionManager


@dataclass(frozen=True, slots=True)
class UploadResult:
    artifact: UploadedArtifact
    session: EditSession


def artifact_kind(path: Path) -> ArtifactKind | None:
    return ARTIFACT_SUFFIXES.get(path.suffix.lower())


def check_artifact(path: Path) -> Result[ArtifactKind, InvalidArtifact]:
    """Local checks only: the file exists and has a supported format."""
    kind = artifact_kind(path)
    if kind is None:
        expected = ", ".join(sorted(ARTIFACT_SUFFIXES))
        return Err(
            InvalidArtifact(
                path=path, reason=f"unsupported file type {path.suffix!r} (expected {expected})"
            )
        )
    if not path.is_file():
        return Err(InvalidArtifact(path=path, reason="file not found"))
    return Ok(kind)


def _version_code(payload: StrDict) -> int | None:
    raw = payload.get("versionCode")
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and raw.strip().isdigit():
        return int(raw.strip())
    return None


def upload_artifact(
    *,
    api: PublishingApi,
    sessions: EditSessionManager,
    package: str,
    path: Path,
    session: EditSession | None,
    console: ConsoleProtocol,
    allow_implicit_target_creation: bool = True,
    open_attempted: bool = False,
) -> Result[UploadResult, PublishError]:
    """Upload the binary into ``session``, opening an edit first if there is none.

    When the package does not exist yet no edit can be opened. The binary is
    then uploaded without one and a single further edit is opened afterwards.
    Pass ``open_attempted=True`` when the caller already tried to open an edit
    for this run.
    """
    console.header(f"Upload {path.name}")

    checked = check_artifact(path)
    if isinstance(checked, Err):
        return checked
    kind = checked.value

    if session is None and not open_attempted:
        opened = sessions.open_new(package)
        if isinstance(opened, Ok):
            session = opened.value
        elif not isinstance(opened.error, TargetNotProvisioned):
            return opened

    if session is None:
        if not allow_implicit_target_creation:
            return Err(TargetNotProvisioned(package_name=package))
        console.info(f"{package} does not exist yet; the upload will create it")

    uploaded = api.upload_artifact(package, session.edit_id if session else None, path, kind)
    if isinstance(uploaded, Err):
        error = uploaded.error
        if error.rejected:
            return Err(
                InvalidArtifact(path=path, reason=error.message, rejected_by_platform=True)
            )
        return Err(UploadFailed(path=path, reason=str(error)))

    version_code = _version_code(uploaded.value)
    if version_code is None:
        return Err(UploadFailed(path=path, reason="upload response has no versionCode"))

    artifact = UploadedArtifact(
        version_code=version_code,
        version_name=get_str(uploaded.value, "versionName"),
        sha1=get_str(uploaded.value, "sha1"),
        kind=kind,
    )
    console.success(f"uploaded {kind} (version code {version_code})")
    if artifact.version_name:
        console.print(f"version name: {artifact.version_name}", Style.DIM)

    if session is None:
        # The package exists now; this is the single retry.
        reopened = sessions.open_new(package)
        if isinstance(reopened, Err):
            return reopened
        session = reopened.value

    return Ok(UploadResult(artifact=artifact, session=session))
