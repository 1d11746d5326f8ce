"""Persistent record of open edit sessions.

The state file is the only mechanism for resuming interrupted work: a record
is written as soon as an edit is opened and removed only after that edit is
committed. Layout::

    {
      "schema": 1,
      "edits": {
        "com.example.app": {"edit_id": "...", "created_at": "2026-01-01T10:00:00+00:00"}
      }
    }

Writes are atomic (temp file + replace). There is no cross-process locking;
callers serialize invocations per package.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

from hounds.core.result import Err, Ok, Result
from hounds.core.structured import StrDict, as_str_dict, get_str, get_table
from hounds.platform.files import atomic_write_json
from hounds.publish.errors import SessionStoreFailed
from hounds.publish.model import EditSession

STATE_SCHEMA = 1
STATE_FILENAME = "state.json"


def _parse_created_at(raw: str) -> datetime | None:
    try:
        value = datetime.fromisoformat(raw)
    except ValueError:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value


def _to_session(package: str, entry: StrDict) -> EditSession | None:
    edit_id = get_str(entry, "edit_id")
    created_raw = get_str(entry, "created_at")
    created_at = _parse_created_at(created_raw) if created_raw else None
    if edit_id is None or created_at is None:
        return None
    return EditSession(edit_id=edit_id, package_name=package, created_at=created_at)


class SessionStore:
    """JSON-file store keyed by package name."""

    def __init__(self, state_dir: Path) -> None:
        self.path = state_dir / STATE_FILENAME

    def _read(self) -> Result[StrDict, SessionStoreFailed]:
        if not self.path.exists():
            return Ok({"schema": STATE_SCHEMA, "edits": {}})

        try:
            obj: object = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            return Err(SessionStoreFailed(path=self.path, reason=f"cannot read state: {e}"))

        data = as_str_dict(obj)
        if data is None:
            return Err(SessionStoreFailed(path=self.path, reason="state root must be an object"))

        schema = data.get("schema")
        if schema != STATE_SCHEMA:
            return Err(
                SessionStoreFailed(path=self.path, reason=f"unsupported state schema: {schema}")
            )
        return Ok(data)

    def _write(self, data: StrDict) -> Result[None, SessionStoreFailed]:
        try:
            atomic_write_json(self.path, data)
        except OSError as e:
            return Err(SessionStoreFailed(path=self.path, reason=f"cannot write state: {e}"))
        return Ok(None)

    def load(self, package: str) -> Result[EditSession | None, SessionStoreFailed]:
        """Return the recorded session for ``package``; malformed entries count as absent."""
        data = self._read()
        if isinstance(data, Err):
            return data

        edits = get_table(data.value, "edits") or {}
        entry = get_table(edits, package)
        return Ok(_to_session(package, entry) if entry is not None else None)

    def save(self, session: EditSession) -> Result[None, SessionStoreFailed]:
        data = self._read()
        if isinstance(data, Err):
            return data

        state = data.value
        edits = get_table(state, "edits") or {}
        edits[session.package_name] = {
            "edit_id": session.edit_id,
            "created_at": session.created_at.isoformat(),
        }
        state["edits"] = edits
        return self._write(state)

    def clear(self, package: str) -> Result[bool, SessionStoreFailed]:
        """Remove the record for ``package``. Returns whether one existed."""
        data = self._read()
        if isinstance(data, Err):
            return data

        state = data.value
        edits = get_table(state, "edits") or {}
        if package not in edits:
            return Ok(False)

        del edits[package]
        state["edits"] = edits
        written = self._write(state)
        if isinstance(written, Err):
            return written
        return Ok(True)

    def list_sessions(self) -> Result[tuple[EditSession, ...], SessionStoreFailed]:
        data = self._read()
        if isinstance(data, Err):
            return data

        edits = get_table(data.value, "edits") or {}
        sessions: list[EditSession] = []
        for package in sorted(edits):
            entry = get_table(edits, package)
            session = _to_session(package, entry) if entry is not None else None
            if session is not None:
                sessions.append(session)
        return Ok(tuple(sessions))
