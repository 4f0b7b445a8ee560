"""Release lifecycle orchestration.

``LifecycleService`` sequences the release primitives for one target:

    build     new release per repository, links untouched
    deploy    build, confirm, link
    link      swap every repository to an existing release, run hooks
    update    pull and rebuild the live release in place, run hooks
    rollback  swap every repository to the release before its current one
    rebuild   re-run build scripts of the live release
    list      report releases and which one is live
    prune     delete old unreferenced releases

Repositories are always processed in configuration order, one at a time.
Every precondition that concerns all repositories (a branch to build, a
release directory to link, a prior state to roll back from) is checked for
all of them before the first one is touched.
"""

from __future__ import annotations

import shutil
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from relman.core.config import Config, RepoConfig, TargetConfig
from relman.core.layout import TargetLayout
from relman.core.result import Err, Ok, Result
from relman.output.console import ConsoleProtocol, Style
from relman.platform.locking import TargetLock
from relman.release.errors import ReleaseError
from relman.release.guard import InterruptionGuard
from relman.release.hooks import DeployInfo, HookDispatcher, HookRun
from relman.release.ids import next_release_id
from relman.release.index import ReleaseIndex
from relman.release.retention import parse_prune_spec, select_for_pruning
from relman.release.state import RepoState, StateStore
from relman.release.switcher import LinkSwitcher, SwapOutcome

from .builder import ReleaseBuilder

__all__ = [
    "LifecycleService",
    "LinkReport",
    "PruneReport",
    "ReleaseListing",
]


@dataclass(frozen=True, slots=True)
class LinkReport:
    release: str
    linked: bool = True
    swaps: tuple[SwapOutcome, ...] = ()
    hooks: tuple[HookRun, ...] = ()


@dataclass(frozen=True, slots=True)
class ReleaseListing:
    release: str
    current: bool
    branches: tuple[tuple[str, str], ...] = ()

    def render(self) -> str:
        marker = "*" if self.current else " "
        pairs = "".join(f" {repo}:{branch}" for repo, branch in self.branches)
        return f"{marker}{self.release} -> {pairs}"


@dataclass(frozen=True, slots=True)
class PruneReport:
    selected: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()
    confirmed: bool = True


def _always_yes(_message: str) -> bool:
    return True


@dataclass
class LifecycleService:
    """Runs lifecycle commands against one target.

    Args:
        config: Loaded configuration.
        target: The target to operate on.
        console: Output sink.
        guard: Interruption guard protecting link swaps.
        confirm: Asks the operator a yes/no question. Without one, every
            question is answered yes.
        run_hooks: Run notification hooks after link/deploy/update.
        copy_forward: Copy configured dependency dirs into new releases.
        clock: Source of the time used for new release ids.
    """

    config: Config
    target: TargetConfig
    console: ConsoleProtocol
    guard: InterruptionGuard
    confirm: Callable[[str], bool] = _always_yes
    run_hooks: bool = True
    copy_forward: bool = True
    clock: Callable[[], datetime] = datetime.now
    layout: TargetLayout = field(init=False)
    store: StateStore = field(init=False)
    index: ReleaseIndex = field(init=False)
    builder: ReleaseBuilder = field(init=False)
    switcher: LinkSwitcher = field(init=False)
    hooks: HookDispatcher = field(init=False)
    _lock: TargetLock = field(init=False)

    def __post_init__(self) -> None:
        self.layout = TargetLayout.from_config(self.config, self.target.name)
        self.store = StateStore(self.layout)
        self.index = ReleaseIndex(self.layout)
        self.builder = ReleaseBuilder(
            layout=self.layout, console=self.console, copy_forward=self.copy_forward
        )
        self.switcher = LinkSwitcher(
            layout=self.layout, store=self.store, guard=self.guard, console=self.console
        )
        self.hooks = HookDispatcher(console=self.console)
        self._lock = TargetLock(self.layout.info_dir)

    # -------------------------------------------------------------------------
    # Session
    # -------------------------------------------------------------------------

    def open(self) -> Result[None, ReleaseError]:
        """Check target preconditions, create its directories, take its lock."""
        if not self.config.base_dir.is_dir():
            return Err(
                ReleaseError(
                    kind="base_dir_missing",
                    message=(
                        f"Cannot find base directory ({self.config.base_dir}). "
                        "Please create or mount it first!"
                    ),
                )
            )

        if not self.target.repos:
            return Err(
                ReleaseError(
                    kind="no_repos",
                    message=f"Target '{self.target.name}' has no repositories configured",
                )
            )

        try:
            self.layout.ensure_dirs()
        except OSError as e:
            return Err(
                ReleaseError(
                    kind="base_dir_missing",
                    message=f"Could not create target directories: {e}",
                )
            )

        locked = self._lock.acquire()
        if isinstance(locked, Err):
            return Err(
                ReleaseError(kind="locked", message=locked.error.message, hint=locked.error.hint)
            )
        return Ok(None)

    def close(self) -> None:
        self._lock.release()

    # -------------------------------------------------------------------------
    # build / deploy
    # -------------------------------------------------------------------------

    def resolve_branches(self, branches: list[str]) -> Result[dict[str, str], ReleaseError]:
        """Branch to build for each repository.

        Branches are handed out in configuration order; when there are fewer
        branches than repositories the last one is reused. With no branches
        every repository rebuilds its current branch.
        """
        resolved: dict[str, str] = {}
        for i, repo in enumerate(self.target.repos):
            if branches:
                resolved[repo.name] = branches[min(i, len(branches) - 1)]
                continue

            current = self.store.read(repo.name).current_branch
            if not current:
                return Err(
                    ReleaseError(
                        kind="no_branch",
                        message=(
                            "No branch specified and no saved branch name "
                            f"to use for '{repo.name}'"
                        ),
                        hint="pass the branch to build, e.g. `relman build main`",
                    )
                )
            resolved[repo.name] = current
        return Ok(resolved)

    def build(self, branches: list[str]) -> Result[str, ReleaseError]:
        """Build a new release of every repository. Returns the release id.

        If any repository fails, the partly built release is removed.
        """
        resolved = self.resolve_branches(branches)
        if isinstance(resolved, Err):
            return resolved

        release_id = next_release_id(self.index.list(), self.clock())
        if isinstance(release_id, Err):
            return release_id
        release = release_id.value

        for repo in self.target.repos:
            self.console.header(f"{repo.name} @ {resolved[repo.name]}")
            built = self.builder.build(repo, release, resolved[repo.name])
            if isinstance(built, Err):
                self._discard_release(release)
                return built

        self.console.success(f"Built release {release}")
        return Ok(release)

    def deploy(self, branches: list[str]) -> Result[LinkReport, ReleaseError]:
        """Build, ask the operator, then link.

        Declining leaves the release built but unlinked; the report then has
        ``linked=False``.
        """
        built = self.build(branches)
        if isinstance(built, Err):
            return built
        release = built.value

        if not self.confirm(
            "The release has now been built. Are you ready to swap the symlinks?"
        ):
            return Ok(LinkReport(release=release, linked=False))

        return self.link(release, command="deploy")

    # -------------------------------------------------------------------------
    # link / rollback
    # -------------------------------------------------------------------------

    def link(self, release: str, *, command: str = "link") -> Result[LinkReport, ReleaseError]:
        """Point every repository's production link at ``release``."""
        release = release.strip()
        if not release or "/" in release or release in {".", ".."}:
            return Err(
                ReleaseError(
                    kind="invalid_input",
                    message=(
                        f'Command "{command}" requires a valid release '
                        "to swap the production links"
                    ),
                )
            )

        plan: list[tuple[RepoConfig, Path]] = []
        for repo in self.target.repos:
            release_dir = self.index.release_dir(release, repo.name)
            if not release_dir.is_dir():
                return Err(
                    ReleaseError(
                        kind="release_missing",
                        message=f"Cannot find release directory at: {release_dir}",
                        hint="run `relman list` to see available releases",
                    )
                )
            plan.append((repo, release_dir))

        info = DeployInfo(command=command, release=release)
        swaps: list[SwapOutcome] = []
        for repo, release_dir in plan:
            branch = self.index.branch_of(release, repo.name)
            self.console.print(f"Linking to new release dir for '{repo.name}'...")
            swapped = self.switcher.swap(repo.name, release_dir, branch)
            if isinstance(swapped, Err):
                return swapped
            swaps.append(swapped.value)
            info.record_branches(swapped.value.old_branch, branch)

        self.console.success(f"Release {release} is live")
        hooks = self._dispatch_hooks(info)
        return Ok(LinkReport(release=release, swaps=tuple(swaps), hooks=tuple(hooks)))

    def rollback(self) -> Result[list[SwapOutcome], ReleaseError]:
        """Swap every repository to the release preceding its current one.

        The oldest release has no predecessor; rolling back from it relinks
        the same release.
        """
        plan: list[tuple[RepoConfig, str, Path]] = []
        for repo in self.target.repos:
            state = self.store.read(repo.name)
            if not state.has_release:
                return Err(
                    ReleaseError(
                        kind="no_state",
                        message=f"Cannot find current release of '{repo.name}' to rollback from!",
                    )
                )

            previous = self.index.previous_of(state.current_release)
            if previous is None:
                return Err(
                    ReleaseError(
                        kind="no_previous_release",
                        message="Cannot determine previous release!",
                    )
                )

            release_dir = self.index.release_dir(previous, repo.name)
            if not release_dir.is_dir():
                return Err(
                    ReleaseError(
                        kind="release_missing",
                        message=f"Cannot find release directory at: {release_dir}",
                    )
                )
            if previous == state.current_release:
                self.console.info(f"'{repo.name}' is already on the oldest release ({previous})")
            plan.append((repo, previous, release_dir))

        swaps: list[SwapOutcome] = []
        for repo, previous, release_dir in plan:
            self.console.print(f"Rolling back '{repo.name}' to release {previous}...")
            swapped = self.switcher.swap(
                repo.name, release_dir, self.index.branch_of(previous, repo.name)
            )
            if isinstance(swapped, Err):
                return swapped
            swaps.append(swapped.value)

        self.console.success("Rollback complete")
        return Ok(swaps)

    # -------------------------------------------------------------------------
    # update / rebuild
    # -------------------------------------------------------------------------

    def _current_states(
        self, *, need_branch: bool
    ) -> Result[list[tuple[RepoConfig, RepoState]], ReleaseError]:
        states: list[tuple[RepoConfig, RepoState]] = []
        for repo in self.target.repos:
            state = self.store.read(repo.name)
            if not state.has_release or (need_branch and not state.current_branch):
                return Err(
                    ReleaseError(
                        kind="no_state",
                        message=f"Cannot find current release information for '{repo.name}'!",
                        hint="link a release first",
                    )
                )
            states.append((repo, state))
        return Ok(states)

    def update(self) -> Result[LinkReport, ReleaseError]:
        """Pull and rebuild the live release in place, then run hooks."""
        states = self._current_states(need_branch=True)
        if isinstance(states, Err):
            return states

        info = DeployInfo(command="update", release=states.value[0][1].current_release)
        for repo, state in states.value:
            self.console.header(f"{repo.name} @ {state.current_branch}")
            updated = self.builder.update(repo, state.current_release, state.current_branch)
            if isinstance(updated, Err):
                return updated
            info.record_branches(state.current_branch, state.current_branch)

        self.console.success("Update complete")
        hooks = self._dispatch_hooks(info)
        return Ok(LinkReport(release=info.release, hooks=tuple(hooks)))

    def rebuild(self) -> Result[None, ReleaseError]:
        """Re-run the build script of every repository's live release."""
        states = self._current_states(need_branch=False)
        if isinstance(states, Err):
            return states

        for repo, state in states.value:
            release_dir = self.index.release_dir(state.current_release, repo.name)
            if not release_dir.is_dir():
                return Err(
                    ReleaseError(
                        kind="release_missing",
                        message=f"Cannot find release directory at: {release_dir}",
                    )
                )

            self.console.print(f"Rebuilding copy of '{repo.name}'...")
            built = self.builder.run_build_script(repo, release_dir)
            if isinstance(built, Err):
                return built

            branch = self.index.branch_of(state.current_release, repo.name)
            if branch and branch != state.current_branch:
                self.store.update_branch(repo.name, branch)

        self.console.success("Rebuild complete")
        return Ok(None)

    # -------------------------------------------------------------------------
    # list / prune
    # -------------------------------------------------------------------------

    def listings(self) -> list[ReleaseListing]:
        referenced = self.store.referenced_releases(self.target.repo_names)
        out: list[ReleaseListing] = []
        for release in self.index.list():
            branches: list[tuple[str, str]] = []
            for repo in self.target.repos:
                marker_branch = self.index.branch_of(release, repo.name)
                if marker_branch:
                    branches.append((repo.name, marker_branch))
            out.append(
                ReleaseListing(
                    release=release, current=release in referenced, branches=tuple(branches)
                )
            )
        return out

    def list_releases(self) -> list[ReleaseListing]:
        """Print the release report and return it."""
        listings = self.listings()
        if not listings:
            self.console.print("No releases found")
            return listings

        self.console.print("Current releases:")
        self.console.newline()
        for listing in listings:
            self.console.print(listing.render(), Style.BOLD if listing.current else Style.DEFAULT)
        return listings

    def prune(self, spec_text: str | None) -> Result[PruneReport, ReleaseError]:
        """Delete old releases selected by the retention policy."""
        spec = parse_prune_spec(spec_text)
        if isinstance(spec, Err):
            return spec

        releases = self.index.list()
        referenced = self.store.referenced_releases(self.target.repo_names)
        selected = tuple(sorted(select_for_pruning(releases, referenced, spec.value)))

        if not selected:
            self.console.print("No releases selected for removal")
            return Ok(PruneReport())

        self.console.print("Releases selected for removal:")
        self.console.newline()
        for release in selected:
            self.console.print(release)
        self.console.newline()

        if not self.confirm("Prune the above releases?"):
            self.console.print("Pruning cancelled")
            return Ok(PruneReport(selected=selected, confirmed=False))

        self.console.print("Pruning...")
        removed: list[str] = []
        failures: list[str] = []
        root = self.layout.release_root.resolve()
        for release in selected:
            path = self.layout.release_root / release
            if path.is_symlink() or path.resolve().parent != root:
                failures.append(f"{release}: not a release directory")
                continue
            try:
                shutil.rmtree(path)
            except OSError as e:
                failures.append(f"{release}: {e}")
                continue
            removed.append(release)

        if failures:
            return Err(
                ReleaseError(
                    kind="prune_failed",
                    message="Could not remove: " + "; ".join(failures),
                )
            )

        self.console.success(f"Removed {len(removed)} release(s)")
        return Ok(PruneReport(selected=selected, removed=tuple(removed)))

    def _discard_release(self, release: str) -> None:
        """Remove what a failed build left of ``release``."""
        path = self.layout.release_root / release
        if not path.exists():
            return
        self.console.print(f"Removing incomplete release {release}...", Style.DIM)
        try:
            shutil.rmtree(path)
        except OSError as e:
            self.console.warning(f"Could not remove incomplete release {path}: {e}")

    # -------------------------------------------------------------------------

    def _dispatch_hooks(self, info: DeployInfo) -> list[HookRun]:
        if not self.run_hooks:
            return []
        return self.hooks.dispatch(self.layout.hook_dir, info)
