"""Publishing API client.

This module provides:
- PublishingApi: Protocol for every call the pipeline makes (injectable)
- RestPublishingApi: Real implementation over urllib with a bearer token
- MockPublishingApi: In-memory implementation for tests
- ApiError: Error details for a failed call

The URL layout follows the Android Publisher v3 REST surface: every edit-scoped
resource lives under ``applications/{package}/edits/{editId}``, and binary
payloads go to the separate upload host with ``uploadType=media``.
"""

from __future__ import annotations

import json
import ssl
import threading
import time
import urllib.error
import urllib.parse
import urllib.request
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from hounds import __version__
from hounds.core.config import ApiSettings
from hounds.core.result import Err, Ok, Result
from hounds.core.structured import StrDict, as_obj_list, as_str_dict, get_str, get_table
from hounds.publish.errors import ApiUnavailable
from hounds.publish.model import ArtifactKind
from hounds.publish.timeouts import API_READ_RETRY_ATTEMPTS, API_READ_RETRY_DELAY_SECONDS

__all__ = [
    "ApiError",
    "PublishingApi",
    "RestPublishingApi",
    "MockPublishingApi",
    "as_unavailable",
    "image_mime_type",
]

_ARTIFACT_MIME_TYPES: dict[ArtifactKind, str] = {
    "bundle": "application/octet-stream",
    "apk": "application/vnd.android.package-archive",
}

_ARTIFACT_COLLECTIONS: dict[ArtifactKind, str] = {
    "bundle": "bundles",
    "apk": "apks",
}

_IMAGE_MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
}


def image_mime_type(path: Path) -> str:
    return _IMAGE_MIME_TYPES.get(path.suffix.lower(), "image/png")


@dataclass(frozen=True, slots=True)
class ApiError:
    """Publishing API error details.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 for network errors)
        message: Platform diagnostic, or transport error text
    """

    url: str
    status: int
    message: str

    @property
    def not_found(self) -> bool:
        return self.status == 404

    @property
    def rejected(self) -> bool:
        """The platform understood the request and refused its content."""
        return self.status in (400, 409, 412, 422)

    @property
    def unauthorized(self) -> bool:
        return self.status in (401, 403)

    @property
    def transient(self) -> bool:
        return self.status == 0 or self.status == 429 or self.status >= 500

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"


@runtime_checkable
class PublishingApi(Protocol):
    """Every publishing platform call used by the pipeline.

    All methods return ``Ok`` with the decoded JSON response (or the new edit
    id for ``insert_edit``) and never raise for transport or HTTP failures.
    """

    def insert_edit(self, package: str) -> Result[str, ApiError]: ...

    def get_edit(self, package: str, edit_id: str) -> Result[StrDict, ApiError]: ...

    def validate_edit(self, package: str, edit_id: str) -> Result[StrDict, ApiError]: ...

    def commit_edit(self, package: str, edit_id: str) -> Result[StrDict, ApiError]: ...

    def upload_artifact(
        self, package: str, edit_id: str | None, path: Path, kind: ArtifactKind
    ) -> Result[StrDict, ApiError]:
        """Upload a binary; ``edit_id=None`` targets a package with no open edit."""
        ...

    def update_listing(
        self, package: str, edit_id: str, language: str, listing: StrDict
    ) -> Result[StrDict, ApiError]: ...

    def patch_details(
        self, package: str, edit_id: str, details: StrDict
    ) -> Result[StrDict, ApiError]: ...

    def update_content_rating(
        self, package: str, edit_id: str, rating: StrDict
    ) -> Result[StrDict, ApiError]: ...

    def upload_image(
        self, package: str, edit_id: str, language: str, image_type: str, path: Path
    ) -> Result[StrDict, ApiError]: ...

    def delete_images(
        self, package: str, edit_id: str, language: str, image_type: str
    ) -> Result[StrDict, ApiError]:
        """Remove every image of ``image_type`` so a re-run does not duplicate screenshots."""
        ...

    def update_pricing(
        self, package: str, edit_id: str, pricing: StrDict
    ) -> Result[StrDict, ApiError]: ...

    def get_track(self, package: str, edit_id: str, track: str) -> Result[StrDict, ApiError]: ...

    def update_track(
        self, package: str, edit_id: str, track: str, body: StrDict
    ) -> Result[StrDict, ApiError]: ...

    def update_availability(
        self, package: str, edit_id: str, body: StrDict
    ) -> Result[StrDict, ApiError]: ...


UrlOpen = Callable[..., Any]


def _quote(segment: str) -> str:
    return urllib.parse.quote(segment, safe="")


def _error_message(raw: bytes, fallback: str) -> str:
    """Extract ``error.message`` from a Google-style JSON error body."""
    try:
        obj: object = json.loads(raw.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError):
        text = raw.decode("utf-8", errors="replace").strip()
        return text or fallback

    data = as_str_dict(obj)
    if data is None:
        return fallback
    error = get_table(data, "error")
    if error is None:
        return fallback
    return get_str(error, "message") or fallback


class RestPublishingApi:
    """Publishing API over HTTPS using urllib.

    Handles:
    - Bearer authorization and JSON encoding
    - Raw media uploads for binaries and images
    - Bounded fixed-interval retries for idempotent reads only
    """

    def __init__(
        self,
        settings: ApiSettings,
        token: str,
        *,
        urlopen: UrlOpen | None = None,
        sleep: Callable[[float], None] = time.sleep,
        user_agent: str = f"hounds/{__version__}",
    ) -> None:
        self._settings = settings
        self._token = token
        self._urlopen: UrlOpen = urlopen or urllib.request.urlopen
        self._sleep = sleep
        self._user_agent = user_agent
        self._ssl_context = ssl.create_default_context()

    # -- URL helpers -----------------------------------------------------------

    def _app_url(self, package: str, *parts: str, upload: bool = False) -> str:
        base = self._settings.upload_base_url if upload else self._settings.base_url
        tail = "/".join(parts)
        url = f"{base}/applications/{_quote(package)}"
        return f"{url}/{tail}" if tail else url

    def _edit_url(self, package: str, edit_id: str, *parts: str, upload: bool = False) -> str:
        return self._app_url(package, "edits", _quote(edit_id), *parts, upload=upload)

    # -- transport -------------------------------------------------------------

    def _send(
        self,
        method: str,
        url: str,
        *,
        body: bytes | None,
        content_type: str | None,
        timeout: float,
    ) -> Result[StrDict, ApiError]:
        headers = {
            "Authorization": f"Bearer {self._token}",
            "User-Agent": self._user_agent,
            "Accept": "application/json",
        }
        if content_type is not None:
            headers["Content-Type"] = content_type

        try:
            req = urllib.request.Request(url, data=body, headers=headers, method=method)
            with self._urlopen(req, timeout=timeout, context=self._ssl_context) as response:
                raw: bytes = response.read()
        except urllib.error.HTTPError as e:
            try:
                detail = e.read()
            except OSError:
                detail = b""
            message = _error_message(detail, str(e.reason))
            return Err(ApiError(url=url, status=e.code, message=message))
        except urllib.error.URLError as e:
            return Err(ApiError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(ApiError(url=url, status=0, message="Request timed out"))
        except ValueError as e:
            return Err(ApiError(url=url, status=0, message=str(e)))
        except OSError as e:
            return Err(ApiError(url=url, status=0, message=str(e)))

        if not raw.strip():
            return Ok({})
        try:
            data_obj: object = json.loads(raw.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return Err(ApiError(url=url, status=0, message=f"JSON parse error: {e}"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ApiError(url=url, status=0, message="Expected JSON object"))
        return Ok(data)

    def _get(self, url: str) -> Result[StrDict, ApiError]:
        attempts = max(1, API_READ_RETRY_ATTEMPTS)
        for attempt in range(attempts):
            result = self._send(
                "GET", url, body=None, content_type=None, timeout=self._settings.timeout_seconds
            )
            if isinstance(result, Ok):
                return result
            if attempt < attempts - 1 and result.error.transient:
                self._sleep(API_READ_RETRY_DELAY_SECONDS)
                continue
            return result
        return Err(ApiError(url=url, status=0, message="request not attempted"))

    def _json(self, method: str, url: str, payload: StrDict | None) -> Result[StrDict, ApiError]:
        body = json.dumps(payload).encode("utf-8") if payload is not None else None
        return self._send(
            method,
            url,
            body=body,
            content_type="application/json" if body is not None else None,
            timeout=self._settings.timeout_seconds,
        )

    def _media(self, url: str, path: Path, mime_type: str) -> Result[StrDict, ApiError]:
        try:
            data = path.read_bytes()
        except OSError as e:
            return Err(ApiError(url=url, status=0, message=f"cannot read {path}: {e}"))
        return self._send(
            "POST",
            f"{url}?uploadType=media",
            body=data,
            content_type=mime_type,
            timeout=self._settings.upload_timeout_seconds,
        )

    # -- edits -----------------------------------------------------------------

    def insert_edit(self, package: str) -> Result[str, ApiError]:
        url = self._app_url(package, "edits")
        result = self._json("POST", url, {})
        if isinstance(result, Err):
            return result
        edit_id = get_str(result.value, "id")
        if edit_id is None:
            return Err(ApiError(url=url, status=0, message="edit response has no id"))
        return Ok(edit_id)

    def get_edit(self, package: str, edit_id: str) -> Result[StrDict, ApiError]:
        return self._get(self._edit_url(package, edit_id))

    def validate_edit(self, package: str, edit_id: str) -> Result[StrDict, ApiError]:
        url = self._app_url(package, "edits", f"{_quote(edit_id)}:validate")
        return self._json("POST", url, None)

    def commit_edit(self, package: str, edit_id: str) -> Result[StrDict, ApiError]:
        url = self._app_url(package, "edits", f"{_quote(edit_id)}:commit")
        return self._json("POST", url, None)

    # -- binaries --------------------------------------------------------------

    def upload_artifact(
        self, package: str, edit_id: str | None, path: Path, kind: ArtifactKind
    ) -> Result[StrDict, ApiError]:
        collection = _ARTIFACT_COLLECTIONS[kind]
        if edit_id is None:
            url = self._app_url(package, collection, upload=True)
        else:
            url = self._edit_url(package, edit_id, collection, upload=True)
        return self._media(url, path, _ARTIFACT_MIME_TYPES[kind])

    # -- listing ---------------------------------------------------------------

    def update_listing(
        self, package: str, edit_id: str, language: str, listing: StrDict
    ) -> Result[StrDict, ApiError]:
        url = self._edit_url(package, edit_id, "listings", _quote(language))
        return self._json("PUT", url, listing)

    def patch_details(
        self, package: str, edit_id: str, details: StrDict
    ) -> Result[StrDict, ApiError]:
        return self._json("PATCH", self._edit_url(package, edit_id, "details"), details)

    def update_content_rating(
        self, package: str, edit_id: str, rating: StrDict
    ) -> Result[StrDict, ApiError]:
        return self._json("PUT", self._edit_url(package, edit_id, "contentRating"), rating)

    def upload_image(
        self, package: str, edit_id: str, language: str, image_type: str, path: Path
    ) -> Result[StrDict, ApiError]:
        url = self._edit_url(
            package, edit_id, "listings", _quote(language), _quote(image_type), upload=True
        )
        return self._media(url, path, image_mime_type(path))

    def delete_images(
        self, package: str, edit_id: str, language: str, image_type: str
    ) -> Result[StrDict, ApiError]:
        url = self._edit_url(package, edit_id, "listings", _quote(language), _quote(image_type))
        return self._send(
            "DELETE", url, body=None, content_type=None, timeout=self._settings.timeout_seconds
        )

    # -- distribution ----------------------------------------------------------

    def update_pricing(
        self, package: str, edit_id: str, pricing: StrDict
    ) -> Result[StrDict, ApiError]:
        return self._json("PUT", self._edit_url(package, edit_id, "pricing"), pricing)

    def get_track(self, package: str, edit_id: str, track: str) -> Result[StrDict, ApiError]:
        return self._get(self._edit_url(package, edit_id, "tracks", _quote(track)))

    def update_track(
        self, package: str, edit_id: str, track: str, body: StrDict
    ) -> Result[StrDict, ApiError]:
        return self._json("PUT", self._edit_url(package, edit_id, "tracks", _quote(track)), body)

    def update_availability(
        self, package: str, edit_id: str, body: StrDict
    ) -> Result[StrDict, ApiError]:
        return self._json("PATCH", self._edit_url(package, edit_id, "countryAvailability"), body)


class MockPublishingApi:
    """In-memory publishing platform for tests.

    Edits are numbered ``edit-1``, ``edit-2``... Packages listed in
    ``unprovisioned`` answer 404 to ``insert_edit`` until a binary has been
    uploaded for them. Failures are scripted per operation name.

    Usage:
        api = MockPublishingApi(version_code=7)
        api.fail("validate_edit", ApiError(url="mock", status=400, message="bad"))
        result = api.validate_edit("com.example.app", "edit-1")
        assert isinstance(result, Err)
    """

    def __init__(
        self,
        *,
        version_code: int = 1,
        unprovisioned: set[str] | None = None,
    ) -> None:
        self.version_code = version_code
        self.unprovisioned: set[str] = set(unprovisioned or ())
        self.calls: list[tuple[str, ...]] = []
        self.tracks: dict[str, list[StrDict]] = {}
        self.images: list[tuple[str, str]] = []
        self.requests: dict[str, list[StrDict]] = {}
        self.committed: list[str] = []
        self._failures: dict[str, list[ApiError | None]] = {}
        self._always: dict[str, ApiError] = {}
        self._edit_counter = 0
        self._lock = threading.Lock()

    # -- scripting -------------------------------------------------------------

    def fail(self, operation: str, error: ApiError, *, times: int | None = None) -> None:
        """Make ``operation`` fail ``times`` times (forever when None)."""
        if times is None:
            self._always[operation] = error
            return
        self._failures.setdefault(operation, []).extend([error] * times)

    def count(self, operation: str) -> int:
        return sum(1 for call in self.calls if call[0] == operation)

    @property
    def operations(self) -> list[str]:
        return [call[0] for call in self.calls]

    def _record(self, operation: str, *args: str) -> ApiError | None:
        with self._lock:
            self.calls.append((operation, *args))
            queued = self._failures.get(operation)
            if queued:
                return queued.pop(0)
            return self._always.get(operation)

    def _store(self, operation: str, payload: StrDict) -> None:
        with self._lock:
            self.requests.setdefault(operation, []).append(payload)

    @staticmethod
    def _url(operation: str) -> str:
        return f"mock://{operation}"

    # -- edits -----------------------------------------------------------------

    def insert_edit(self, package: str) -> Result[str, ApiError]:
        error = self._record("insert_edit", package)
        if error is not None:
            return Err(error)
        if package in self.unprovisioned:
            url = self._url("insert_edit")
            return Err(ApiError(url=url, status=404, message="Package not found"))
        with self._lock:
            self._edit_counter += 1
            return Ok(f"edit-{self._edit_counter}")

    def get_edit(self, package: str, edit_id: str) -> Result[StrDict, ApiError]:
        error = self._record("get_edit", package, edit_id)
        if error is not None:
            return Err(error)
        return Ok({"id": edit_id})

    def validate_edit(self, package: str, edit_id: str) -> Result[StrDict, ApiError]:
        error = self._record("validate_edit", package, edit_id)
        if error is not None:
            return Err(error)
        return Ok({"id": edit_id})

    def commit_edit(self, package: str, edit_id: str) -> Result[StrDict, ApiError]:
        error = self._record("commit_edit", package, edit_id)
        if error is not None:
            return Err(error)
        self.committed.append(edit_id)
        return Ok({"id": edit_id})

    # -- binaries --------------------------------------------------------------

    def upload_artifact(
        self, package: str, edit_id: str | None, path: Path, kind: ArtifactKind
    ) -> Result[StrDict, ApiError]:
        error = self._record("upload_artifact", package, edit_id or "", path.name, kind)
        if error is not None:
            return Err(error)
        self.unprovisioned.discard(package)
        return Ok(
            {
                "versionCode": self.version_code,
                "versionName": f"1.0.{self.version_code}",
                "sha1": "0" * 40,
            }
        )

    # -- listing ---------------------------------------------------------------

    def update_listing(
        self, package: str, edit_id: str, language: str, listing: StrDict
    ) -> Result[StrDict, ApiError]:
        error = self._record("update_listing", package, edit_id, language)
        if error is not None:
            return Err(error)
        self._store("update_listing", listing)
        return Ok(dict(listing, language=language))

    def patch_details(
        self, package: str, edit_id: str, details: StrDict
    ) -> Result[StrDict, ApiError]:
        error = self._record("patch_details", package, edit_id)
        if error is not None:
            return Err(error)
        self._store("patch_details", details)
        return Ok(details)

    def update_content_rating(
        self, package: str, edit_id: str, rating: StrDict
    ) -> Result[StrDict, ApiError]:
        error = self._record("update_content_rating", package, edit_id)
        self._store("update_content_rating", rating)
        if error is not None:
            return Err(error)
        return Ok(rating)

    def upload_image(
        self, package: str, edit_id: str, language: str, image_type: str, path: Path
    ) -> Result[StrDict, ApiError]:
        error = self._record("upload_image", package, edit_id, image_type, path.name)
        if error is not None:
            return Err(error)
        with self._lock:
            self.images.append((image_type, path.name))
        return Ok({"image": {"id": path.name}})

    def delete_images(
        self, package: str, edit_id: str, language: str, image_type: str
    ) -> Result[StrDict, ApiError]:
        error = self._record("delete_images", package, edit_id, image_type)
        if error is not None:
            return Err(error)
        with self._lock:
            removed = [img for img in self.images if img[0] == image_type]
            self.images = [img for img in self.images if img[0] != image_type]
        return Ok({"deleted": [{"id": name} for _, name in removed]})

    # -- distribution ----------------------------------------------------------

    def update_pricing(
        self, package: str, edit_id: str, pricing: StrDict
    ) -> Result[StrDict, ApiError]:
        error = self._record("update_pricing", package, edit_id)
        if error is not None:
            return Err(error)
        self._store("update_pricing", pricing)
        return Ok(pricing)

    def get_track(self, package: str, edit_id: str, track: str) -> Result[StrDict, ApiError]:
        error = self._record("get_track", package, edit_id, track)
        if error is not None:
            return Err(error)
        releases: list[object] = [dict(r) for r in self.tracks.get(track, [])]
        return Ok({"track": track, "releases": releases})

    def update_track(
        self, package: str, edit_id: str, track: str, body: StrDict
    ) -> Result[StrDict, ApiError]:
        error = self._record("update_track", package, edit_id, track)
        if error is not None:
            return Err(error)
        releases = as_obj_list(body.get("releases")) or []
        self.tracks[track] = [r for r in (as_str_dict(item) for item in releases) if r is not None]
        return Ok(dict(body, track=track))

    def update_availability(
        self, package: str, edit_id: str, body: StrDict
    ) -> Result[StrDict, ApiError]:
        error = self._record("update_availability", package, edit_id)
        if error is not None:
            return Err(error)
        self._store("update_availability", body)
        return Ok(body)


def as_unavailable(operation: str, error: ApiError) -> ApiUnavailable:
    """Wrap a failed call as a stage-level (fatal) transport/auth failure."""
    return ApiUnavailable(operation=operation, status=error.status, reason=error.message)
