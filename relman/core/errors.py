"""Error codes for CLI exit status.

Every fatal path of a command maps to one of these codes. The numeric values
are part of the command line contract and should remain stable:
- 0: Success
- 1: User error (bad release id, invalid prune spec, no prior state)
- 2: Environment error (missing base dir, missing config, target locked)
- 3: Build error (git or build script failed)
- 5: I/O error (link swap or release removal failed)
- 130: Interrupted by the operator
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands."""

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    BUILD_ERROR = 3
    IO_ERROR = 5
    INTERRUPTED = 130

    def __str__(self) -> str:
        """Return human-readable name."""
        return self.name.lower().replace("_", " ")
