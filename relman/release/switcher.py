"""Production link switching.

``LinkSwitcher.swap`` repoints ``current/<target>/<repo>`` at a release
directory and records the change in the repository's state file, with the
Interruption Guard held across both steps.

The new link is built under a temporary name and renamed over the old one
(see ``relman.platform.files.replace_symlink``), so the production path is
never missing during a swap.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from relman.core.layout import TargetLayout
from relman.core.result import Err, Ok, Result
from relman.output.console import ConsoleProtocol
from relman.platform.files import replace_symlink

from .errors import ReleaseError
from .guard import InterruptionGuard
from .state import RepoState, StateStore

__all__ = ["LinkSwitcher", "SwapOutcome"]


@dataclass(frozen=True, slots=True)
class SwapOutcome:
    old_release: str
    old_branch: str
    new_release: str
    new_branch: str
    state_saved: bool = True


class LinkSwitcher:
    def __init__(
        self,
        *,
        layout: TargetLayout,
        store: StateStore,
        guard: InterruptionGuard,
        console: ConsoleProtocol,
    ) -> None:
        self._layout = layout
        self._store = store
        self._guard = guard
        self._console = console

    def swap(self, repo: str, release_dir: Path, branch: str) -> Result[SwapOutcome, ReleaseError]:
        """Point ``repo``'s production link at ``release_dir``.

        ``release_dir`` is ``releases/<target>/<release>/<repo>``; the release
        id recorded in the state file is its parent directory's name.
        """
        if not release_dir.is_dir():
            return Err(
                ReleaseError(
                    kind="release_missing",
                    message=f"Cannot find release directory at: {release_dir}",
                )
            )

        link = self._layout.link_path(repo)
        new_release = release_dir.parent.name

        with self._guard.protected():
            old = self._store.read(repo)
            try:
                replace_symlink(link, release_dir.resolve())
            except OSError as e:
                return Err(
                    ReleaseError(
                        kind="link_failed",
                        message=f"Could not link {link} -> {release_dir}: {e}",
                    )
                )
            saved = self._store.write(
                repo, RepoState(current_release=new_release, current_branch=branch)
            )

        if not saved:
            self._console.warning(
                f"Linked '{repo}' but could not save state to {self._store.path(repo)}"
            )

        return Ok(
            SwapOutcome(
                old_release=old.current_release,
                old_branch=old.current_branch,
                new_release=new_release,
                new_branch=branch,
                state_saved=saved,
            )
        )
