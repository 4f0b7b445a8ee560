"""Error type for the release lifecycle."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

__all__ = ["ReleaseError", "ReleaseErrorKind"]

ReleaseErrorKind = Literal[
    "invalid_input",
    "base_dir_missing",
    "locked",
    "no_repos",
    "no_state",
    "no_branch",
    "release_missing",
    "release_exists",
    "no_previous_release",
    "git_failed",
    "build_failed",
    "link_failed",
    "prune_failed",
]


@dataclass(frozen=True, slots=True)
class ReleaseError:
    """Canonical release error payload.

    ``kind`` drives the exit code chosen by the CLI; ``message`` and ``hint``
    are shown to the operator as-is.
    """

    kind: ReleaseErrorKind
    message: str
    hint: str | None = None
