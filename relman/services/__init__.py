"""Application services for relman.

Services sequence the release primitives (release/) with git and the build
scripts (git/, platform/) for one target at a time.
"""

from relman.services.builder import ReleaseBuilder
from relman.services.lifecycle import LifecycleService, LinkReport, PruneReport, ReleaseListing

__all__ = [
    "LifecycleService",
    "LinkReport",
    "PruneReport",
    "ReleaseBuilder",
    "ReleaseListing",
]
