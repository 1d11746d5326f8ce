"""Error presentation utilities.

Centralized error formatting and exit code mapping for consistent UX. Every
fatal error is printed with a hint naming the next manual action.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from hounds.core.errors import ErrorCode
from hounds.output.console import Style
from hounds.publish.errors import (
    ApiUnavailable,
    CommitRejected,
    ConfigInvalid,
    CredentialMissing,
    GraphicsUploadFailed,
    InvalidArtifact,
    InvalidTrack,
    ListingRejected,
    MetadataInvalid,
    PublishError,
    SessionStoreFailed,
    StageWarning,
    TargetNotProvisioned,
    UploadFailed,
    ValidationRejected,
    warning_message,
)
from hounds.publish.model import TRACKS

if TYPE_CHECKING:
    from hounds.output.console import ConsoleProtocol

__all__ = ["print_publish_error", "print_stage_warning", "publish_error_exit_code"]


def _hint(console: ConsoleProtocol, text: str) -> None:
    console.print(f"hint: {text}", Style.DIM)


def print_publish_error(error: PublishError, console: ConsoleProtocol) -> None:
    """Print a publish error and the next manual action."""
    match error:
        case ConfigInvalid(problems=problems, path=path):
            where = f": {path}" if path is not None else ""
            console.error(f"invalid publish configuration{where}")
            for problem in problems:
                console.print(f"  - {problem}", Style.DIM)
            _hint(console, "fix the fields listed above and re-run")
        case CredentialMissing(token_env=token_env, token_file=token_file):
            console.error("no access token")
            if token_file:
                console.print(f"token file not readable: {token_file}", Style.DIM)
            _hint(console, f"export {token_env}=<token> or set [auth] token_file in hounds.toml")
        case TargetNotProvisioned(package_name=package):
            console.error(f"{package} does not exist on the platform")
            _hint(
                console,
                "create the app in the store console, "
                "or set [publish] allow_implicit_target_creation = true",
            )
        case InvalidArtifact(path=path, reason=reason, rejected_by_platform=rejected):
            who = "rejected by the platform" if rejected else "invalid"
            console.error(f"artifact {who}: {path} ({reason})")
            _hint(console, "build a signed .aab or .apk and re-run")
        case UploadFailed(path=path, reason=reason):
            console.error(f"upload failed: {path.name} ({reason})")
            _hint(console, "re-run `hounds publish`; the open edit is resumed")
        case MetadataInvalid(field=field, reason=reason):
            console.error(f"listing.{field}: {reason}")
            _hint(console, f"fix listing.{field} in the publish configuration and re-run")
        case ListingRejected(language=language, diagnostic=diagnostic):
            console.error(f"{language} listing text rejected by the platform")
            console.print(diagnostic, Style.DIM)
            _hint(
                console,
                "fix listing.title, listing.shortDescription or listing.fullDescription "
                "and re-run; the open edit is resumed",
            )
        case InvalidTrack(track=track):
            console.error(f"unknown track: {track!r}")
            _hint(console, f"use one of: {', '.join(TRACKS)}")
        case GraphicsUploadFailed(image_type=image_type, path=path, reason=reason):
            console.error(f"{image_type} upload failed: {path} ({reason})")
            _hint(console, "check the image and re-run `hounds publish`; the open edit is resumed")
        case ValidationRejected(edit_id=edit_id, diagnostic=diagnostic):
            console.error(f"edit {edit_id} failed validation")
            console.print(diagnostic, Style.DIM)
            _hint(console, "fix the problem above and re-run `hounds publish`")
        case CommitRejected(edit_id=edit_id, diagnostic=diagnostic):
            console.error(f"commit of edit {edit_id} rejected")
            console.print(diagnostic, Style.DIM)
            _hint(
                console,
                "the edit is kept; run `hounds session validate` "
                "then `hounds session commit` once the problem is fixed",
            )
        case ApiUnavailable(operation=operation, status=status, reason=reason):
            code = f"HTTP {status}" if status else "no response"
            console.error(f"{operation} failed ({code}): {reason}")
            if status in (401, 403):
                _hint(console, "refresh the access token or re-grant the account access")
            elif status in (400, 409, 412, 422):
                _hint(console, "the platform refused the request; fix the value above and re-run")
            else:
                _hint(console, "check connectivity and re-run; the open edit is resumed")
        case SessionStoreFailed(path=path, reason=reason):
            console.error(f"session state unusable: {path} ({reason})")
            _hint(console, "fix permissions on the file, or delete it to start a fresh edit")


def print_stage_warning(warning: StageWarning, console: ConsoleProtocol) -> None:
    console.warning(warning_message(warning))


def publish_error_exit_code(error: PublishError) -> int:
    """Get exit code for a publish error."""
    match error:
        case ConfigInvalid() | MetadataInvalid() | InvalidTrack():
            return int(ErrorCode.USER_ERROR)
        case InvalidArtifact(rejected_by_platform=False):
            return int(ErrorCode.USER_ERROR)
        case CredentialMissing():
            return int(ErrorCode.ENV_ERROR)
        case InvalidArtifact() | TargetNotProvisioned() | GraphicsUploadFailed():
            return int(ErrorCode.PUBLISH_ERROR)
        case ListingRejected() | ValidationRejected() | CommitRejected():
            return int(ErrorCode.PUBLISH_ERROR)
        case UploadFailed() | ApiUnavailable():
            return int(ErrorCode.NETWORK_ERROR)
        case SessionStoreFailed():
            return int(ErrorCode.IO_ERROR)
