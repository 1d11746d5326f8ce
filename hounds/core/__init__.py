"""Core types shared by every layer."""

from .config import Settings, SettingsError, load_settings, load_settings_or_default
from .errors import ErrorCode
from .result import Err, Ok, Result

__all__ = [
    # config
    "Settings",
    "SettingsError",
    "load_settings",
    "load_settings_or_default",
    # errors
    "ErrorCode",
    # result
    "Err",
    "Ok",
    "Result",
]
