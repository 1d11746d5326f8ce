"""Process exit codes for the ``hounds`` CLI.

The numeric values are part of the command-line contract (CI scripts branch on
them) and must stay stable:

- 0: Success (commit succeeded, or a dry run completed)
- 1: User error (invalid publish configuration, listing, track, artifact path)
- 2: Environment error (missing access token, unreadable settings)
- 3: Publish error (platform rejected the artifact, validation or commit)
- 4: Network error (upload or API call could not complete)
- 5: I/O error (session state file could not be read or written)
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands."""

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    PUBLISH_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
