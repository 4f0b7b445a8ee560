"""Git repository abstraction.

Thin wrapper over the ``git`` CLI for the handful of operations a release
build needs. Every method inspects the exit status and returns a Result;
nothing here decides whether a failure is fatal.

Usage:
    repo = Repository(layout.working_clone("api"))
    if not repo.exists():
        repo.clone_from("git@example.com:org/api.git")

    match repo.checkout("main", force=True):
        case Ok(_):
            repo.clone_to(release_dir)
        case Err(e):
            console.error(e.message)
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from relman.core.result import Err, Ok, Result
from relman.platform.process import ProcessError
from relman.platform.process import run as run_process
from relman.platform.process import run_streaming

__all__ = [
    "GitError",
    "Repository",
]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git subcommand that failed
        message: Error message
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


def _git_error(command: str, error: ProcessError) -> GitError:
    message = error.stderr.strip() or error.stdout.strip() or str(error)
    return GitError(command=command, message=message, returncode=error.returncode)


class Repository:
    """A git working copy at ``path``."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        """Check if this is a git working copy."""
        return (self.path / ".git").exists()

    def clone_from(self, origin: str) -> Result[None, GitError]:
        """Clone ``origin`` into this path (output streams to the terminal)."""
        self.path.mkdir(parents=True, exist_ok=True)
        result = run_streaming(["git", "clone", origin, "."], cwd=self.path)
        if isinstance(result, Err):
            return Err(_git_error("clone", result.error))
        return Ok(None)

    def clone_to(self, dest: Path) -> Result[None, GitError]:
        """Make a full local copy of this repository at ``dest``.

        The copy checks out whatever branch is currently checked out here.
        Its ``origin`` is this working copy, which is what lets ``pull``
        refresh a release in place later on.
        """
        dest.parent.mkdir(parents=True, exist_ok=True)
        result = run_streaming(
            ["git", "clone", self.path.resolve().as_uri(), str(dest)],
            cwd=self.path,
        )
        if isinstance(result, Err):
            return Err(_git_error("clone", result.error))
        return Ok(None)

    def pull(self) -> Result[None, GitError]:
        result = run_streaming(["git", "pull"], cwd=self.path)
        if isinstance(result, Err):
            return Err(_git_error("pull", result.error))
        return Ok(None)

    def prune_remote(self, remote: str = "origin") -> Result[None, GitError]:
        """Drop remote-tracking branches that no longer exist on ``remote``."""
        return self._simple(["remote", "prune", remote])

    def checkout(self, branch: str, *, force: bool = False) -> Result[None, GitError]:
        args = ["checkout"]
        if force:
            args.append("-f")
        args.append(branch)
        return self._simple(args)

    def delete_branch(self, branch: str) -> Result[None, GitError]:
        """Delete a local branch (``git branch -d``)."""
        return self._simple(["branch", "-d", branch])

    def current_branch(self) -> str | None:
        """Get current branch name.

        Returns None if detached HEAD or error.
        """
        result = self._run(["rev-parse", "--abbrev-ref", "HEAD"])
        match result:
            case Ok(stdout):
                branch = stdout.strip()
                return None if branch in ("", "HEAD") else branch
            case Err(_):
                return None

    def _simple(self, args: list[str]) -> Result[None, GitError]:
        result = self._run(args)
        if isinstance(result, Err):
            return Err(_git_error(" ".join(args[:2]), result.error))
        return Ok(None)

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        """Run a git command in this repository."""
        return run_process(["git", "-C", str(self.path), *args], cwd=self.path)
