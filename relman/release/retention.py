"""Retention policy for old releases.

``prune`` deletes whatever ``select_for_pruning`` returns. Releases that any
repository currently links to are never selected.
"""

from __future__ import annotations

from collections.abc import Iterable, Set
from typing import Literal

from relman.core.result import Err, Ok, Result

from .errors import ReleaseError

__all__ = ["DEFAULT_KEEP", "PruneSpec", "parse_prune_spec", "select_for_pruning"]

DEFAULT_KEEP = 10

# Number of unreferenced releases to keep, or "all" to keep none of them
PruneSpec = int | Literal["all"]


def parse_prune_spec(text: str | None) -> Result[PruneSpec, ReleaseError]:
    if text is None or not text.strip():
        return Ok(DEFAULT_KEEP)

    value = text.strip()
    if value.lower() == "all":
        return Ok("all")
    if value.isdecimal():
        return Ok(int(value))

    return Err(
        ReleaseError(
            kind="invalid_input",
            message=f"Invalid prune spec '{text}'",
            hint='use a number of releases to keep, or "all"',
        )
    )


def select_for_pruning(
    all_releases: Iterable[str],
    referenced: Set[str],
    spec: PruneSpec,
) -> set[str]:
    """Releases eligible for deletion.

    Referenced releases are removed first; then, unless ``spec`` is "all",
    the ``spec`` newest of the remaining releases are kept.
    """
    candidates = sorted(r for r in set(all_releases) if r not in referenced)
    if spec == "all":
        return set(candidates)
    if spec < 0:
        raise ValueError(f"keep count must be non-negative, got {spec}")
    if spec == 0:
        return set(candidates)
    return set(candidates[:-spec])
