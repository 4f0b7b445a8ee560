"""Release lifecycle primitives.

- ``StateStore``: per-repository current release/branch records
- ``ReleaseIndex``: releases on disk, ordering, branch markers
- ``select_for_pruning``: retention policy
- ``InterruptionGuard``: deferred termination around link swaps
- ``LinkSwitcher``: production link swap + state update
- ``HookDispatcher``: post-transition notification scripts
"""

from .errors import ReleaseError
from .guard import InterruptionGuard
from .hooks import DeployInfo, HookDispatcher, HookRun, is_hook_name
from .ids import is_release_id, new_release_id, next_release_id
from .index import BRANCH_MARKER, ReleaseIndex
from .retention import DEFAULT_KEEP, PruneSpec, parse_prune_spec, select_for_pruning
from .state import RepoState, StateStore
from .switcher import LinkSwitcher, SwapOutcome

__all__ = [
    "BRANCH_MARKER",
    "DEFAULT_KEEP",
    "DeployInfo",
    "HookDispatcher",
    "HookRun",
    "InterruptionGuard",
    "LinkSwitcher",
    "PruneSpec",
    "ReleaseError",
    "ReleaseIndex",
    "RepoState",
    "StateStore",
    "SwapOutcome",
    "is_hook_name",
    "is_release_id",
    "new_release_id",
    "next_release_id",
    "parse_prune_spec",
    "select_for_pruning",
]
