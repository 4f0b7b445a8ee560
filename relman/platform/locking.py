"""Advisory per-target lock.

Only one relman invocation may work on a target at a time. The lock is an
exclusive ``flock`` on a sidecar file in the target's info directory; it is
released by the kernel when the process exits, so a killed run never leaves a
stale lock behind.
"""

from __future__ import annotations

import fcntl
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType
from typing import IO

from relman.core.result import Err, Ok, Result

__all__ = ["LOCK_FILE_NAME", "LockError", "TargetLock"]

LOCK_FILE_NAME = ".relman.lock"


@dataclass(frozen=True, slots=True)
class LockError:
    message: str
    path: Path
    hint: str | None = None


class TargetLock:
    """Non-blocking exclusive lock on ``<info_dir>/.relman.lock``."""

    def __init__(self, info_dir: Path) -> None:
        self.path = info_dir / LOCK_FILE_NAME
        self._handle: IO[str] | None = None

    @property
    def held(self) -> bool:
        return self._handle is not None

    def acquire(self) -> Result[None, LockError]:
        if self._handle is not None:
            return Ok(None)

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            handle = self.path.open("a+", encoding="utf-8")
        except OSError as e:
            return Err(LockError(f"Could not open lock file {self.path}: {e}", path=self.path))

        try:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError:
            handle.close()
            return Err(
                LockError(
                    f"Another relman invocation is working on this target ({self.path})",
                    path=self.path,
                    hint="wait for it to finish; the lock is released when it exits",
                )
            )

        self._handle = handle
        return Ok(None)

    def release(self) -> None:
        if self._handle is None:
            return
        try:
            fcntl.flock(self._handle.fileno(), fcntl.LOCK_UN)
        finally:
            self._handle.close()
            self._handle = None

    def __enter__(self) -> TargetLock:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()
