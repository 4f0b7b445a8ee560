"""Platform helpers: filesystem, processes, user paths and locking."""

from .files import atomic_write_text, replace_symlink
from .locking import LockError, TargetLock
from .paths import home, user_config_dir
from .process import ProcessError, run, run_streaming

__all__ = [
    # files
    "atomic_write_text",
    "replace_symlink",
    # locking
    "LockError",
    "TargetLock",
    # paths
    "home",
    "user_config_dir",
    # process
    "ProcessError",
    "run",
    "run_streaming",
]
