"""Git operations used to build releases.

Usage:
    from relman.git import Repository

    repo = Repository(Path("/srv/deploy/repos/api"))
    branch = repo.current_branch()
"""

from relman.git.repository import GitError, Repository

__all__ = [
    "GitError",
    "Repository",
]
