"""Result type for explicit error handling.

Operations that can fail in an expected way (a missing release, a git command
exiting non-zero, a malformed config) return ``Ok(value)`` or ``Err(error)``
instead of raising. Callers branch on the variant:

    match switcher.swap("api", release_dir, "main"):
        case Ok(outcome):
            console.success(f"linked {outcome.new_release}")
        case Err(error):
            console.error(error.message)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeAlias, TypeVar

T = TypeVar("T")
E = TypeVar("E")

__all__ = ["Err", "Ok", "Result"]


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


Result: TypeAlias = Ok[T] | Err[E]
