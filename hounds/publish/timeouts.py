from __future__ import annotations

from datetime import timedelta

# Platform-side edit lifetime. Must not be relaxed.
EDIT_SESSION_TTL = timedelta(hours=1)

# Idempotent API read retry policy (fixed interval, bounded)
API_READ_RETRY_ATTEMPTS = 3
API_READ_RETRY_DELAY_SECONDS = 2.0
