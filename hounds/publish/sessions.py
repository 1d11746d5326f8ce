"""Edit session lifecycle: resume, open, validate, commit.

An edit is the platform's transaction. Everything a run writes (binary,
listing, images, track) lands in one edit and becomes visible only on commit.
The manager keeps exactly one locally tracked edit per package and never
reuses an edit that has reached the platform's one-hour lifetime.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from hounds.core.result import Err, Ok, Result
from hounds.output.console import ConsoleProtocol, Style
from hounds.publish.api import PublishingApi, as_unavailable
from hounds.publish.errors import (
    CommitRejected,
    PublishError,
    TargetNotProvisioned,
    ValidationRejected,
)
from hounds.publish.model import EditSession
from hounds.publish.session_store import SessionStore
from hounds.publish.timeouts import EDIT_SESSION_TTL

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


def is_expired(
    session: EditSession, *, now: datetime, ttl: timedelta = EDIT_SESSION_TTL
) -> bool:
    """An edit exactly ``ttl`` old is already expired."""
    return now - session.created_at >= ttl


class EditSessionManager:
    def __init__(
        self,
        *,
        api: PublishingApi,
        store: SessionStore,
        console: ConsoleProtocol,
        clock: Clock = utc_now,
        ttl: timedelta = EDIT_SESSION_TTL,
    ) -> None:
        self._api = api
        self._store = store
        self._console = console
        self._clock = clock
        self._ttl = ttl

    def current(self, package: str) -> Result[EditSession | None, PublishError]:
        """The locally recorded edit, expired or not."""
        return self._store.load(package)

    def is_expired(self, session: EditSession) -> bool:
        return is_expired(session, now=self._clock(), ttl=self._ttl)

    def resume(self, package: str) -> Result[EditSession | None, PublishError]:
        """Return the recorded edit if it is still usable, else None.

        A recorded edit that the platform no longer knows (committed or
        deleted elsewhere) is treated like an expired one.
        """
        loaded = self._store.load(package)
        if isinstance(loaded, Err):
            return loaded
        session = loaded.value
        if session is None:
            return Ok(None)

        if self.is_expired(session):
            self._console.info(f"edit {session.edit_id} expired; opening a new one")
            return Ok(None)

        existing = self._api.get_edit(package, session.edit_id)
        if isinstance(existing, Err):
            if existing.error.not_found:
                self._console.info(f"edit {session.edit_id} is gone on the platform")
                return Ok(None)
            return Err(as_unavailable("get edit", existing.error))

        self._console.print(f"resuming edit {session.edit_id}", Style.DIM)
        return Ok(session)

    def open_new(self, package: str) -> Result[EditSession, PublishError]:
        """Open a fresh edit and record it before anyone can use it."""
        inserted = self._api.insert_edit(package)
        if isinstance(inserted, Err):
            if inserted.error.not_found:
                return Err(TargetNotProvisioned(package_name=package))
            return Err(as_unavailable("create edit", inserted.error))

        session = EditSession(
            edit_id=inserted.value, package_name=package, created_at=self._clock()
        )
        saved = self._store.save(session)
        if isinstance(saved, Err):
            return saved

        self._console.success(f"edit opened: {session.edit_id}")
        return Ok(session)

    def resume_or_open(self, package: str) -> Result[EditSession, PublishError]:
        resumed = self.resume(package)
        if isinstance(resumed, Err):
            return resumed
        if resumed.value is not None:
            return Ok(resumed.value)
        return self.open_new(package)

    def validate(self, package: str, edit_id: str) -> Result[None, PublishError]:
        result = self._api.validate_edit(package, edit_id)
        if isinstance(result, Err):
            error = result.error
            if error.unauthorized or error.transient:
                return Err(as_unavailable("validate edit", error))
            return Err(ValidationRejected(edit_id=edit_id, diagnostic=error.message))

        self._console.success(f"edit {edit_id} validated")
        return Ok(None)

    def commit(self, package: str, edit_id: str) -> Result[None, PublishError]:
        """Publish the edit. Never retried: a second commit is not idempotent."""
        result = self._api.commit_edit(package, edit_id)
        if isinstance(result, Err):
            error = result.error
            if error.unauthorized or error.transient:
                return Err(as_unavailable("commit edit", error))
            return Err(CommitRejected(edit_id=edit_id, diagnostic=error.message))

        self._console.success(f"edit {edit_id} committed")

        cleared = self._store.clear(package)
        if isinstance(cleared, Err):
            # The release is live; only the local bookkeeping is stale.
            self._console.warning(
                f"committed, but could not clear session record: {cleared.error.reason}"
            )
            self._console.print(f"hint: run `hounds session discard {package}`", Style.DIM)
        return Ok(None)

    def discard(self, package: str) -> Result[bool, PublishError]:
        """Forget the local record without touching the platform."""
        return self._store.clear(package)
