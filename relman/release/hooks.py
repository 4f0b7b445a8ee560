"""Post-transition notification hooks.

After ``link``, ``deploy`` and ``update`` the scripts in ``hooks/<target>/``
are run one after another. Only files named ``hook_*.py`` are executed;
anything else in the directory is reported and skipped. Hooks are
best-effort: a failing hook is reported and the next one still runs.

Each hook inherits the process environment plus:

    OLD_BRANCH     branch live before the transition
    NEW_BRANCH     branch live after it
    RELEASE_NAME   release id now linked
    RELMAN_CMD     command that triggered the hooks
    DEPLOY_HOOK    always "1"; hook scripts check it before doing anything
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

from relman.core.result import Err
from relman.output.console import ConsoleProtocol, Style
from relman.platform.process import run_streaming

__all__ = [
    "HOOK_PREFIX",
    "HOOK_SUFFIX",
    "DeployInfo",
    "HookDispatcher",
    "HookRun",
    "is_hook_name",
]

HOOK_PREFIX = "hook_"
HOOK_SUFFIX = ".py"
HOOK_MARKER_VAR = "DEPLOY_HOOK"


def is_hook_name(name: str) -> bool:
    return (
        name.startswith(HOOK_PREFIX)
        and name.endswith(HOOK_SUFFIX)
        and len(name) > len(HOOK_PREFIX) + len(HOOK_SUFFIX)
    )


@dataclass
class DeployInfo:
    """Before/after metadata for one invocation.

    Branches are recorded from the first repository that reports them; later
    repositories do not overwrite them.
    """

    command: str
    release: str = ""
    old_branch: str | None = None
    new_branch: str | None = None

    def record_branches(self, old: str, new: str) -> None:
        if self.old_branch is None:
            self.old_branch = old
        if self.new_branch is None:
            self.new_branch = new

    def as_env(self) -> dict[str, str]:
        return {
            "OLD_BRANCH": self.old_branch or "",
            "NEW_BRANCH": self.new_branch or "",
            "RELEASE_NAME": self.release,
            "RELMAN_CMD": self.command,
        }


@dataclass(frozen=True, slots=True)
class HookRun:
    path: Path
    ran: bool
    ok: bool = False
    detail: str = ""


def _empty_runs() -> list[HookRun]:
    return []


@dataclass
class HookDispatcher:
    console: ConsoleProtocol
    interpreter: str = field(default_factory=lambda: sys.executable)

    def dispatch(self, hook_dir: Path, info: DeployInfo) -> list[HookRun]:
        """Run every correctly named hook in ``hook_dir``, in name order."""
        if not hook_dir.is_dir():
            return _empty_runs()

        entries = sorted(hook_dir.iterdir(), key=lambda p: p.name)
        if not entries:
            return _empty_runs()

        env = {**os.environ, **info.as_env(), HOOK_MARKER_VAR: "1"}
        runs = _empty_runs()

        self.console.print("Running hooks...")
        for entry in entries:
            if not (is_hook_name(entry.name) and entry.is_file()):
                self.console.warning(f"Refusing to run mis-named '{entry}'")
                runs.append(HookRun(path=entry, ran=False, detail="mis-named"))
                continue

            self.console.print(f"Running hook '{entry}'...", Style.DIM)
            result = run_streaming([self.interpreter, str(entry)], cwd=hook_dir, env=env)
            if isinstance(result, Err):
                self.console.error(f"Error running hook '{entry.name}': {result.error}")
                runs.append(HookRun(path=entry, ran=True, ok=False, detail=str(result.error)))
                continue
            runs.append(HookRun(path=entry, ran=True, ok=True))

        return runs
