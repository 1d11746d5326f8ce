"""Typed tool settings loaded from ``hounds.toml``.

Settings describe *how* the tool talks to the publishing platform (endpoints,
timeouts, credential source, local state directory). They are separate from
the per-release publish configuration (see ``hounds.publish.config_file``).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_bool, get_float, get_int, get_str, get_table

__all__ = [
    "ApiSettings",
    "AuthSettings",
    "PublishSettings",
    "PathsSettings",
    "Settings",
    "SettingsError",
    "load_settings",
    "load_settings_or_default",
    "SETTINGS_FILENAME",
    "DEFAULT_API_BASE_URL",
    "DEFAULT_UPLOAD_BASE_URL",
]

SETTINGS_FILENAME = "hounds.toml"

DEFAULT_API_BASE_URL = "https://androidpublisher.googleapis.com/androidpublisher/v3"
DEFAULT_UPLOAD_BASE_URL = "https://androidpublisher.googleapis.com/upload/androidpublisher/v3"

DEFAULT_TIMEOUT_SECONDS = 60.0
DEFAULT_UPLOAD_TIMEOUT_SECONDS = 15 * 60.0
DEFAULT_TOKEN_ENV = "HOUNDS_ACCESS_TOKEN"
DEFAULT_LANGUAGE = "en-US"
DEFAULT_MAX_UPLOAD_WORKERS = 4
DEFAULT_CONFIG_PATH = "publish-config.json"
DEFAULT_STATE_DIR = ".hounds"


@dataclass(frozen=True, slots=True)
class SettingsError:
    """Error when settings cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class ApiSettings:
    base_url: str = DEFAULT_API_BASE_URL
    upload_base_url: str = DEFAULT_UPLOAD_BASE_URL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    upload_timeout_seconds: float = DEFAULT_UPLOAD_TIMEOUT_SECONDS


@dataclass(frozen=True, slots=True)
class AuthSettings:
    """Where the bearer token comes from.

    The token itself is issued by an external identity collaborator; this
    tool only reads it.
    """

    token_env: str = DEFAULT_TOKEN_ENV
    token_file: str | None = None


@dataclass(frozen=True, slots=True)
class PublishSettings:
    language: str = DEFAULT_LANGUAGE
    max_upload_workers: int = DEFAULT_MAX_UPLOAD_WORKERS
    # Uploading the first binary is how the platform creates an app.
    allow_implicit_target_creation: bool = True
    config_path: str = DEFAULT_CONFIG_PATH


@dataclass(frozen=True, slots=True)
class PathsSettings:
    state_dir: str = DEFAULT_STATE_DIR


@dataclass(frozen=True, slots=True)
class Settings:
    """Main settings container."""

    api: ApiSettings = field(default_factory=ApiSettings)
    auth: AuthSettings = field(default_factory=AuthSettings)
    publish: PublishSettings = field(default_factory=PublishSettings)
    paths: PathsSettings = field(default_factory=PathsSettings)

    def state_dir(self, base: Path) -> Path:
        """Resolve the state directory against ``base`` (usually the cwd)."""
        p = Path(self.paths.state_dir).expanduser()
        return p if p.is_absolute() else base / p

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Settings:
        """Create Settings from a mapping (parsed TOML)."""
        api: StrDict = get_table(data, "api") or {}
        auth: StrDict = get_table(data, "auth") or {}
        publish: StrDict = get_table(data, "publish") or {}
        paths: StrDict = get_table(data, "paths") or {}

        workers = get_int(publish, "max_upload_workers")
        if workers is not None and workers < 1:
            raise ValueError(f"publish.max_upload_workers must be >= 1, got {workers}")

        return cls(
            api=ApiSettings(
                base_url=(get_str(api, "base_url") or DEFAULT_API_BASE_URL).rstrip("/"),
                upload_base_url=(
                    get_str(api, "upload_base_url") or DEFAULT_UPLOAD_BASE_URL
                ).rstrip("/"),
                timeout_seconds=get_float(api, "timeout_seconds") or DEFAULT_TIMEOUT_SECONDS,
                upload_timeout_seconds=get_float(api, "upload_timeout_seconds")
                or DEFAULT_UPLOAD_TIMEOUT_SECONDS,
            ),
            auth=AuthSettings(
                token_env=get_str(auth, "token_env") or DEFAULT_TOKEN_ENV,
                token_file=get_str(auth, "token_file"),
            ),
            publish=PublishSettings(
                language=get_str(publish, "language") or DEFAULT_LANGUAGE,
                max_upload_workers=workers or DEFAULT_MAX_UPLOAD_WORKERS,
                allow_implicit_target_creation=get_bool(
                    publish, "allow_implicit_target_creation", default=True
                ),
                config_path=get_str(publish, "config_path") or DEFAULT_CONFIG_PATH,
            ),
            paths=PathsSettings(
                state_dir=get_str(paths, "state_dir") or DEFAULT_STATE_DIR,
            ),
        )


def _parse_toml(path: Path) -> Result[StrDict, SettingsError]:
    import tomllib

    try:
        data_obj: object = tomllib.loads(path.read_bytes().decode("utf-8"))
    except FileNotFoundError:
        return Err(SettingsError(f"Settings file not found: {path}", path=path))
    except PermissionError:
        return Err(SettingsError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(SettingsError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(SettingsError(f"Error reading settings: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(SettingsError("Settings root must be a TOML table", path=path))
    return Ok(data)


def load_settings(path: Path) -> Result[Settings, SettingsError]:
    """Load and parse settings from a TOML file."""
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Settings.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(SettingsError(f"Invalid settings: {e}", path=path))


def load_settings_or_default(path: Path) -> Result[Settings, SettingsError]:
    """Like ``load_settings`` but a missing file yields default settings.

    A file that exists but fails to parse is still an error.
    """
    if not path.exists():
        return Ok(Settings())
    return load_settings(path)
