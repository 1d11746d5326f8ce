"""Result type for explicit error handling.

Every stage of the publishing pipeline returns a ``Result`` instead of raising.
Fatal failures travel as ``Err(<typed error>)``; successes (including those
carrying warnings) travel as ``Ok(value)``. Callers branch with
``isinstance(result, Err)``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful result carrying ``value``."""

    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failed result carrying ``error``."""

    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result = Union[Ok[T], Err[E]]
