"""Release identifiers.

A release id is the local wall-clock time at which the build started,
formatted ``YYYYMMDDHHMMSS``. The fixed width makes lexical order equal to
chronological order, which the index and the retention policy rely on.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from datetime import datetime

from relman.core.result import Err, Ok, Result

from .errors import ReleaseError

__all__ = ["RELEASE_ID_FORMAT", "is_release_id", "new_release_id", "next_release_id"]

RELEASE_ID_FORMAT = "%Y%m%d%H%M%S"

_RELEASE_ID_RE = re.compile(r"^\d{14}$")


def new_release_id(now: datetime | None = None) -> str:
    return (now or datetime.now()).strftime(RELEASE_ID_FORMAT)


def is_release_id(name: str) -> bool:
    return bool(_RELEASE_ID_RE.match(name))


def next_release_id(
    existing: Sequence[str],
    now: datetime | None = None,
) -> Result[str, ReleaseError]:
    """Generate an id that sorts after every release already on disk.

    Two builds within the same second, or a clock that moved backwards, would
    break the ordering invariant. Both are reported instead of reusing or
    reordering an identifier.
    """
    release = new_release_id(now)
    if release in existing:
        return Err(
            ReleaseError(
                kind="release_exists",
                message=f"Release {release} already exists",
                hint="wait a second and run the build again",
            )
        )

    newest = max((r for r in existing if is_release_id(r)), default="")
    if newest and release < newest:
        return Err(
            ReleaseError(
                kind="release_exists",
                message=f"New release {release} would sort before existing release {newest}",
                hint="check the system clock",
            )
        )

    return Ok(release)
