"""Release directory index.

Lists the releases present on disk for a target. There is no cache: the
directory is re-read on every call, so the answer always reflects what a
concurrent prune or build has just done.
"""

from __future__ import annotations

from pathlib import Path

from relman.core.layout import TargetLayout

__all__ = ["BRANCH_MARKER", "ReleaseIndex"]

# Written into every release copy by the builder
BRANCH_MARKER = ".release-branch"


class ReleaseIndex:
    def __init__(self, layout: TargetLayout) -> None:
        self._layout = layout

    def list(self) -> list[str]:
        """Release ids on disk, oldest first."""
        root = self._layout.release_root
        if not root.is_dir():
            return []
        return sorted(p.name for p in root.iterdir() if p.is_dir())

    def previous_of(self, current: str) -> str | None:
        """Release immediately before ``current``.

        When ``current`` is the oldest release, or is not on disk at all, the
        oldest release is returned; a rollback from there is a rollback to
        itself. Returns None only if there are no releases.
        """
        releases = self.list()
        if not releases:
            return None
        try:
            idx = releases.index(current)
        except ValueError:
            return releases[0]
        return releases[idx - 1] if idx > 0 else releases[0]

    def release_dir(self, release: str, repo: str) -> Path:
        return self._layout.release_dir(release, repo)

    def branch_of(self, release: str, repo: str) -> str:
        """Branch a release was built from; "" when the marker is missing."""
        marker = self.release_dir(release, repo) / BRANCH_MARKER
        try:
            return marker.read_text(encoding="utf-8").strip()
        except (OSError, UnicodeDecodeError):
            return ""
