"""Per-repository state records.

Each managed repository of a target has a small JSON file recording which
release its production link points at and which branch that release was
built from:

    {
        "currentRelease": "20240102030405",
        "currentBranch": "main"
    }

Reading never fails: a missing, unreadable or corrupt file is treated as
"no prior state", and a missing one is created with empty values. Writing
never raises: it reports success as a boolean that the caller must check.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from pathlib import Path

from relman.core.layout import TargetLayout
from relman.core.structured import as_str_dict
from relman.platform.files import atomic_write_text

__all__ = ["RepoState", "StateStore"]


@dataclass(frozen=True, slots=True)
class RepoState:
    current_release: str = ""
    current_branch: str = ""

    @property
    def has_release(self) -> bool:
        return bool(self.current_release)

    def to_json(self) -> str:
        payload = {
            "currentRelease": self.current_release,
            "currentBranch": self.current_branch,
        }
        return json.dumps(payload, indent=4) + "\n"

    @classmethod
    def from_obj(cls, data: object) -> RepoState:
        table = as_str_dict(data)
        if table is None:
            return cls()
        release = table.get("currentRelease")
        branch = table.get("currentBranch")
        return cls(
            current_release=release if isinstance(release, str) else "",
            current_branch=branch if isinstance(branch, str) else "",
        )


class StateStore:
    """Reads and writes ``info/<target>/<repo>.json``."""

    def __init__(self, layout: TargetLayout) -> None:
        self._layout = layout

    def path(self, repo: str) -> Path:
        return self._layout.state_path(repo)

    def read(self, repo: str) -> RepoState:
        path = self.path(repo)
        try:
            raw = path.read_text(encoding="utf-8")
            data: object = json.loads(raw)
        except FileNotFoundError:
            self.write(repo, RepoState())
            return RepoState()
        except (OSError, UnicodeDecodeError, ValueError):
            return RepoState()
        return RepoState.from_obj(data)

    def write(self, repo: str, state: RepoState) -> bool:
        try:
            atomic_write_text(self.path(repo), state.to_json())
        except OSError:
            return False
        return True

    def update_branch(self, repo: str, branch: str) -> bool:
        """Record ``branch`` without touching the current release."""
        return self.write(repo, replace(self.read(repo), current_branch=branch))

    def referenced_releases(self, repos: list[str]) -> set[str]:
        """Releases currently linked by any of ``repos``."""
        return {s.current_release for s in (self.read(r) for r in repos) if s.has_release}
