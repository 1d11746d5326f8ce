"""Bearer credential lookup.

Tokens are minted by an external identity collaborator (service-account key
exchange, ``gcloud auth print-access-token``...). This module only finds one:
first in the configured environment variable, then in the configured token
file.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from hounds.core.config import AuthSettings
from hounds.core.result import Err, Ok, Result
from hounds.publish.errors import CredentialMissing


def resolve_access_token(
    settings: AuthSettings,
    *,
    base: Path,
    environ: Mapping[str, str] | None = None,
) -> Result[str, CredentialMissing]:
    env = os.environ if environ is None else environ
    token = env.get(settings.token_env, "").strip()
    if token:
        return Ok(token)

    if settings.token_file:
        path = Path(settings.token_file).expanduser()
        if not path.is_absolute():
            path = base / path
        try:
            token = path.read_text(encoding="utf-8").strip()
        except OSError:
            token = ""
        if token:
            return Ok(token)

    return Err(CredentialMissing(token_env=settings.token_env, token_file=settings.token_file))
