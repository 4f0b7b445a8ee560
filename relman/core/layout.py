"""Filesystem layout of a deployment target.

Under the configured base directory, a target ``T`` owns:

    releases/T/<release>/<repo>/   built copies
    current/T/<repo>               production symlinks
    info/T/<repo>.json             per-repository state records
    hooks/T/                       notification scripts

and shares ``repos/<repo>/``, the long-lived working clones.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .config import Config, DirsConfig

__all__ = ["TargetLayout"]


@dataclass(frozen=True, slots=True)
class TargetLayout:
    """Paths for one target below ``base_dir``."""

    base_dir: Path
    target: str
    dirs: DirsConfig = DirsConfig()

    @classmethod
    def from_config(cls, config: Config, target: str) -> TargetLayout:
        return cls(base_dir=config.base_dir, target=target, dirs=config.dirs)

    @property
    def release_root(self) -> Path:
        """Directory holding one subdirectory per release."""
        return self.base_dir / self.dirs.releases / self.target

    @property
    def link_root(self) -> Path:
        """Directory holding the production symlinks."""
        return self.base_dir / self.dirs.current / self.target

    @property
    def info_dir(self) -> Path:
        """Directory holding the state records."""
        return self.base_dir / self.dirs.info / self.target

    @property
    def hook_dir(self) -> Path:
        return self.base_dir / self.dirs.hooks / self.target

    @property
    def repo_root(self) -> Path:
        return self.base_dir / self.dirs.repos

    def release_dir(self, release: str, repo: str) -> Path:
        return self.release_root / release / repo

    def link_path(self, repo: str) -> Path:
        return self.link_root / repo

    def state_path(self, repo: str) -> Path:
        return self.info_dir / f"{repo}.json"

    def working_clone(self, repo: str) -> Path:
        return self.repo_root / repo

    def target_dirs(self) -> tuple[Path, ...]:
        """Directories every command expects to exist."""
        return (self.info_dir, self.link_root, self.release_root, self.hook_dir)

    def ensure_dirs(self) -> None:
        for d in self.target_dirs():
            d.mkdir(parents=True, exist_ok=True)
