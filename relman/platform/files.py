"""Filesystem helpers."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

__all__ = ["atomic_write_text", "replace_symlink"]


def atomic_write_text(path: Path, content: str, *, encoding: str = "utf-8") -> None:
    """Write text to path atomically using temp file + replace."""
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.",
        suffix=".tmp",
        dir=str(path.parent),
    )
    tmp_path = Path(tmp_name)

    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)


def replace_symlink(link: Path, target: Path) -> None:
    """Point ``link`` at ``target`` without the link ever being absent.

    The new link is created under a temporary name in the same directory and
    renamed over ``link``. rename(2) replaces the old link in one step, so a
    reader sees either the old target or the new one.

    Raises:
        IsADirectoryError: If ``link`` exists and is a real directory.
        OSError: If the link cannot be created or renamed.
    """
    if link.is_dir() and not link.is_symlink():
        raise IsADirectoryError(f"refusing to replace a real directory: {link}")

    link.parent.mkdir(parents=True, exist_ok=True)
    # Leftovers from interrupted runs, whatever process made them
    for stale in link.parent.glob(f".{link.name}.*.tmp"):
        if stale.is_symlink():
            stale.unlink(missing_ok=True)

    tmp_link = link.with_name(f".{link.name}.{os.getpid()}.tmp")
    tmp_link.symlink_to(target, target_is_directory=True)
    try:
        os.replace(tmp_link, link)
    finally:
        if tmp_link.is_symlink():
            tmp_link.unlink(missing_ok=True)
