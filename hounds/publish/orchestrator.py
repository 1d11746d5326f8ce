"""Publish run: preflight, then one edit driven through every stage.

    idle -> session_ready -> uploaded -> metadata_set -> graphics_set
         -> distribution_set -> validated -> committed

Any fatal error ends the run in ``aborted``, except a failed commit, which
leaves it in ``validated`` with the edit still recorded so the commit can be
retried by hand. Every advanced state is reported through the console; the
edit record in the session store is the only thing that survives the process.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Literal

from hounds.core.result import Err, Ok, Result
from hounds.output.console import ConsoleProtocol, Style
from hounds.publish.api import PublishingApi
from hounds.publish.compliance import age_band, apply_compliance
from hounds.publish.distribution import apply_distribution, check_track, pricing_request
from hounds.publish.errors import (
    PublishError,
    StageWarning,
    TargetNotProvisioned,
    warning_message,
)
from hounds.publish.fsm import FINISH, StepOutcome, advance, run_state_machine
from hounds.publish.graphics import apply_graphics, discover_screenshots
from hounds.publish.listing import apply_listing, validate_listing
from hounds.publish.model import EditSession, PublishConfig, StageReport, UploadedArtifact
from hounds.publish.sessions import EditSessionManager
from hounds.publish.upload import check_artifact, upload_artifact

PublishState = Literal[
    "idle",
    "session_ready",
    "uploaded",
    "metadata_set",
    "graphics_set",
    "distribution_set",
    "validated",
    "committed",
    "aborted",
]

PREFLIGHT = "preflight"

# Stage run by the handler of each state; a failure is reported under it.
STAGE_BY_STATE: dict[str, str] = {
    "idle": "session",
    "session_ready": "upload",
    "uploaded": "metadata",
    "metadata_set": "graphics",
    "graphics_set": "distribution",
    "distribution_set": "validate",
    "validated": "commit",
}


@dataclass(frozen=True, slots=True)
class RunState:
    state: PublishState
    session: EditSession | None = None
    artifact: UploadedArtifact | None = None
    open_attempted: bool = False
    warnings: tuple[StageWarning, ...] = ()


@dataclass(frozen=True, slots=True)
class PublishOutcome:
    state: PublishState
    package_name: str
    edit_id: str | None = None
    version_code: int | None = None
    warnings: tuple[StageWarning, ...] = ()
    error: PublishError | None = None
    failed_stage: str | None = None
    planned: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.error is None


def preflight(config: PublishConfig) -> Result[tuple[StageWarning, ...], PublishError]:
    """Local checks only. Makes no network call."""
    listing = validate_listing(config.listing)
    if isinstance(listing, Err):
        return listing

    track = check_track(config.distribution.track)
    if isinstance(track, Err):
        return track

    pricing = pricing_request(config.distribution.pricing)
    if isinstance(pricing, Err):
        return pricing

    artifact = check_artifact(config.artifact_path)
    if isinstance(artifact, Err):
        return artifact

    return Ok(listing.value)


def plan_actions(config: PublishConfig, session: EditSession | None) -> tuple[str, ...]:
    """Describe the mutating calls a real run would make."""
    planned: list[str] = []
    if session is None:
        planned.append(f"upload {config.artifact_path.name} (creates {config.package_name})")
        planned.append("open an edit after the upload")
    else:
        planned.append(f"upload {config.artifact_path.name} into edit {session.edit_id}")

    planned.append(f"update {config.language} listing: {config.listing.title!r}")
    planned.append(f"set category {config.listing.category} and policy link")
    if config.compliance is not None:
        planned.append(f"set content rating ({age_band(config.compliance)})")

    graphics = config.graphics
    if graphics is not None:
        if graphics.icon is not None:
            planned.append(f"upload icon {graphics.icon.name}")
        if graphics.feature_graphic is not None:
            planned.append(f"upload feature graphic {graphics.feature_graphic.name}")
        if graphics.screenshots_dir is not None and graphics.screenshots_dir.is_dir():
            for image_type, paths in discover_screenshots(graphics.screenshots_dir).items():
                planned.append(f"replace {image_type} with {len(paths)} image(s)")

    distribution = config.distribution
    pricing = distribution.pricing
    planned.append("set price: free" if pricing.free else f"set price: {pricing.price}")
    planned.append(f"add the uploaded version to the {distribution.track} track")
    countries = distribution.countries
    planned.append(
        "make available in all countries"
        if countries == "all"
        else f"make available in {', '.join(countries)}"
    )
    planned.append("validate the edit")
    planned.append("commit the edit")
    return tuple(planned)


def _merge(
    warnings: tuple[StageWarning, ...], report: StageReport
) -> tuple[StageWarning, ...]:
    return tuple(dict.fromkeys((*warnings, *report.warnings)))


Step = Result[StepOutcome[RunState], PublishError]


class PublishOrchestrator:
    def __init__(
        self,
        *,
        api: PublishingApi,
        sessions: EditSessionManager,
        console: ConsoleProtocol,
        max_upload_workers: int = 4,
        allow_implicit_target_creation: bool = True,
    ) -> None:
        self._api = api
        self._sessions = sessions
        self._console = console
        self._max_upload_workers = max_upload_workers
        self._allow_implicit = allow_implicit_target_creation

    def run(self, config: PublishConfig, *, dry_run: bool = False) -> PublishOutcome:
        package = config.package_name

        checked = preflight(config)
        if isinstance(checked, Err):
            return PublishOutcome(
                state="aborted", package_name=package, error=checked.error, failed_stage=PREFLIGHT
            )
        for warning in checked.value:
            self._console.warning(warning_message(warning))

        last = RunState(state="idle", warnings=checked.value)

        def save_state(state: RunState) -> Result[RunState, PublishError]:
            nonlocal last
            last = state
            self._console.print(f"-> {state.state}", Style.DIM)
            return Ok(state)

        handlers = {
            "idle": lambda s: self._open_session(s, package),
            "session_ready": (
                (lambda s: Ok(FINISH)) if dry_run else (lambda s: self._upload(s, config))
            ),
            "uploaded": lambda s: self._metadata(s, config),
            "metadata_set": lambda s: self._graphics(s, config),
            "graphics_set": lambda s: self._distribution(s, config),
            "distribution_set": lambda s: self._validate(s, package),
            "validated": lambda s: self._commit(s, package),
            "committed": lambda s: Ok(FINISH),
        }

        result = run_state_machine(
            initial_state=last,
            get_step=lambda s: s.state,
            handlers=handlers,
            save_state=save_state,
        )

        if isinstance(result, Err):
            # A failed commit keeps the validated edit for a manual retry.
            state: PublishState = "validated" if last.state == "validated" else "aborted"
            return PublishOutcome(
                state=state,
                package_name=package,
                edit_id=last.session.edit_id if last.session else None,
                version_code=last.artifact.version_code if last.artifact else None,
                warnings=last.warnings,
                error=result.error,
                failed_stage=STAGE_BY_STATE[last.state],
            )

        final = result.value
        return PublishOutcome(
            state=final.state,
            package_name=package,
            edit_id=final.session.edit_id if final.session else None,
            version_code=final.artifact.version_code if final.artifact else None,
            warnings=final.warnings,
            planned=plan_actions(config, final.session) if dry_run else (),
        )

    def _open_session(self, state: RunState, package: str) -> Step:
        self._console.header(f"Edit session ({package})")
        opened = self._sessions.resume_or_open(package)
        if isinstance(opened, Err):
            if isinstance(opened.error, TargetNotProvisioned):
                self._console.info(f"{package} is not provisioned yet")
                return Ok(advance(replace(state, state="session_ready", open_attempted=True)))
            return opened
        return Ok(
            advance(
                replace(state, state="session_ready", session=opened.value, open_attempted=True)
            )
        )

    def _upload(self, state: RunState, config: PublishConfig) -> Step:
        uploaded = upload_artifact(
            api=self._api,
            sessions=self._sessions,
            package=config.package_name,
            path=config.artifact_path,
            session=state.session,
            console=self._console,
            allow_implicit_target_creation=self._allow_implicit,
            open_attempted=state.open_attempted,
        )
        if isinstance(uploaded, Err):
            return uploaded
        return Ok(
            advance(
                replace(
                    state,
                    state="uploaded",
                    session=uploaded.value.session,
                    artifact=uploaded.value.artifact,
                )
            )
        )

    def _metadata(self, state: RunState, config: PublishConfig) -> Step:
        session = _require_session(state)
        listing = apply_listing(
            api=self._api,
            package=config.package_name,
            edit_id=session.edit_id,
            language=config.language,
            listing=config.listing,
            console=self._console,
        )
        if isinstance(listing, Err):
            return listing
        warnings = _merge(state.warnings, listing.value)

        if config.compliance is not None:
            rated = apply_compliance(
                api=self._api,
                package=config.package_name,
                edit_id=session.edit_id,
                compliance=config.compliance,
                console=self._console,
            )
            if isinstance(rated, Err):
                return rated
            warnings = _merge(warnings, rated.value)

        return Ok(advance(replace(state, state="metadata_set", warnings=warnings)))

    def _graphics(self, state: RunState, config: PublishConfig) -> Step:
        if config.graphics is None:
            return Ok(advance(replace(state, state="graphics_set")))

        session = _require_session(state)
        applied = apply_graphics(
            api=self._api,
            package=config.package_name,
            edit_id=session.edit_id,
            language=config.language,
            graphics=config.graphics,
            console=self._console,
            max_workers=self._max_upload_workers,
        )
        if isinstance(applied, Err):
            return applied
        return Ok(
            advance(
                replace(state, state="graphics_set", warnings=_merge(state.warnings, applied.value))
            )
        )

    def _distribution(self, state: RunState, config: PublishConfig) -> Step:
        session = _require_session(state)
        if state.artifact is None:
            raise RuntimeError("distribution reached without an uploaded artifact")
        applied = apply_distribution(
            api=self._api,
            package=config.package_name,
            edit_id=session.edit_id,
            version_code=state.artifact.version_code,
            language=config.language,
            distribution=config.distribution,
            console=self._console,
        )
        if isinstance(applied, Err):
            return applied
        return Ok(
            advance(
                replace(
                    state, state="distribution_set", warnings=_merge(state.warnings, applied.value)
                )
            )
        )

    def _validate(self, state: RunState, package: str) -> Step:
        self._console.header("Validate & commit")
        session = _require_session(state)
        validated = self._sessions.validate(package, session.edit_id)
        if isinstance(validated, Err):
            return validated
        return Ok(advance(replace(state, state="validated")))

    def _commit(self, state: RunState, package: str) -> Step:
        session = _require_session(state)
        committed = self._sessions.commit(package, session.edit_id)
        if isinstance(committed, Err):
            return committed
        return Ok(advance(replace(state, state="committed")))


def _require_session(state: RunState) -> EditSession:
    if state.session is None:
        raise RuntimeError(f"no edit session in state {state.state}")
    return state.session

