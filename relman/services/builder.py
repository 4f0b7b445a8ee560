"""Building release copies.

For each repository the builder keeps a long-lived working clone under
``repos/<repo>`` and produces release copies from it:

1. clone the origin (first time) or pull, then prune stale remote branches
2. check out the requested branch and clone the working copy into
   ``releases/<target>/<release>/<repo>``
3. return the working clone to its default branch and drop the temporary
   local branch, so the next build starts from fresh remote state
4. copy configured dependency directories forward from the live release
5. run the repository's build script inside the copy
6. write the branch marker

Every git command and the build script have their exit status checked; a
failure stops the build of that repository.
"""

from __future__ import annotations

import shutil
from collections.abc import Callable
from pathlib import Path

from relman.core.config import RepoConfig
from relman.core.layout import TargetLayout
from relman.core.result import Err, Ok, Result
from relman.git.repository import GitError, Repository
from relman.output.console import ConsoleProtocol, Style
from relman.platform.files import atomic_write_text
from relman.platform.process import run_streaming
from relman.release.errors import ReleaseError
from relman.release.index import BRANCH_MARKER

__all__ = ["ReleaseBuilder"]


def _git_failed(repo: str, error: GitError) -> ReleaseError:
    return ReleaseError(
        kind="git_failed",
        message=(
            f"git {error.command} failed for '{repo}' (exit {error.returncode}): {error.message}"
        ),
    )


class ReleaseBuilder:
    def __init__(
        self,
        *,
        layout: TargetLayout,
        console: ConsoleProtocol,
        copy_forward: bool = True,
    ) -> None:
        self._layout = layout
        self._console = console
        self._copy_forward = copy_forward

    def build(self, repo: RepoConfig, release: str, branch: str) -> Result[Path, ReleaseError]:
        """Produce ``releases/<target>/<release>/<repo>`` at ``branch``."""
        clone = self._refresh_clone(repo)
        if isinstance(clone, Err):
            return clone
        working = clone.value

        release_dir = self._layout.release_dir(release, repo.name)
        self._console.print(f"Copying repo at branch: {branch}...")
        copied = self._with_branch(
            working, repo.name, branch, lambda: working.clone_to(release_dir)
        )
        if isinstance(copied, Err):
            return copied

        if self._copy_forward and repo.copy_dirs:
            self._copy_dependency_dirs(repo, release_dir)

        self._console.print("Building copy of repo...")
        built = self.run_build_script(repo, release_dir)
        if isinstance(built, Err):
            return built

        try:
            atomic_write_text(release_dir / BRANCH_MARKER, branch)
        except OSError as e:
            return Err(
                ReleaseError(
                    kind="build_failed",
                    message=f"Could not write branch marker in {release_dir}: {e}",
                )
            )
        return Ok(release_dir)

    def update(self, repo: RepoConfig, release: str, branch: str) -> Result[Path, ReleaseError]:
        """Pull ``branch`` into an existing release copy and rebuild it."""
        release_dir = self._layout.release_dir(release, repo.name)
        if not release_dir.is_dir():
            return Err(
                ReleaseError(
                    kind="release_missing",
                    message=f"Cannot find release directory at: {release_dir}",
                )
            )

        working = Repository(self._layout.working_clone(repo.name))
        self._console.print(f"Updating repository '{repo.name}'...")
        pulled = working.pull()
        if isinstance(pulled, Err):
            return Err(_git_failed(repo.name, pulled.error))

        self._console.print(f"Updating release branch {branch}")
        refreshed = self._with_branch(
            working, repo.name, branch, lambda: Repository(release_dir).pull()
        )
        if isinstance(refreshed, Err):
            return refreshed

        self._console.print("Rebuilding release branch...")
        built = self.run_build_script(repo, release_dir)
        if isinstance(built, Err):
            return built
        return Ok(release_dir)

    def run_build_script(self, repo: RepoConfig, release_dir: Path) -> Result[None, ReleaseError]:
        script = release_dir / repo.build_script
        if not script.is_file():
            self._console.warning(f"No build script at {script}, skipping build")
            return Ok(None)

        result = run_streaming(["bash", str(script)], cwd=release_dir)
        if isinstance(result, Err):
            return Err(
                ReleaseError(
                    kind="build_failed",
                    message=f"Build script for '{repo.name}' failed: {result.error}",
                    hint=f"fix the build and run it again with `relman rebuild`: {script}",
                )
            )
        return Ok(None)

    def _refresh_clone(self, repo: RepoConfig) -> Result[Repository, ReleaseError]:
        working = Repository(self._layout.working_clone(repo.name))

        if not working.exists():
            self._console.print(f"Cloning repository '{repo.name}' into {working.path}...")
            result = working.clone_from(repo.origin)
        else:
            self._console.print(f"Updating repository '{repo.name}'...")
            result = working.pull()
        if isinstance(result, Err):
            return Err(_git_failed(repo.name, result.error))

        self._console.print("Pruning remote 'origin'...", Style.DIM)
        pruned = working.prune_remote("origin")
        if isinstance(pruned, Err):
            return Err(_git_failed(repo.name, pruned.error))

        return Ok(working)

    def _with_branch(
        self,
        working: Repository,
        name: str,
        branch: str,
        action: Callable[[], Result[None, GitError]],
    ) -> Result[None, ReleaseError]:
        """Run ``action`` with ``branch`` checked out in the working clone.

        Afterwards the clone goes back to the branch it was on and the local
        copy of ``branch`` is deleted. Failures of that cleanup are warnings.
        """
        default = working.current_branch()

        checked_out = working.checkout(branch, force=True)
        if isinstance(checked_out, Err):
            return Err(_git_failed(name, checked_out.error))

        result = action()

        if default is not None and default != branch:
            restored = working.checkout(default)
            if isinstance(restored, Err):
                self._console.warning(
                    f"Could not switch '{name}' back to {default}: {restored.error.message}"
                )
            else:
                deleted = working.delete_branch(branch)
                if isinstance(deleted, Err):
                    self._console.warning(
                        f"Could not delete local branch {branch} in '{name}': "
                        f"{deleted.error.message}"
                    )

        if isinstance(result, Err):
            return Err(_git_failed(name, result.error))
        return Ok(None)

    def _copy_dependency_dirs(self, repo: RepoConfig, release_dir: Path) -> None:
        live = self._layout.link_path(repo.name)
        self._console.print("Copying production module/vendor directories...")
        for rel in repo.copy_dirs:
            src = live / rel
            if not src.is_dir():
                self._console.print(f"  skip {rel} (not in live release)", Style.DIM)
                continue
            dest = release_dir / rel
            try:
                shutil.copytree(src, dest, symlinks=True, dirs_exist_ok=True)
            except (OSError, shutil.Error) as e:
                self._console.warning(f"Could not copy {src} -> {dest}: {e}")
