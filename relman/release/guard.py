"""Interruption guard.

Swapping a production link and recording the new state are two steps that
must both happen, or neither. The guard defers an operator interrupt that
arrives between them:

    guard = InterruptionGuard(console)
    guard.install()
    with guard.protected():
        replace_symlink(link, release_dir)
        store.write(repo, new_state)
    # a Ctrl-C received inside the block takes effect here

Outside a protected block an interrupt terminates immediately. The guard is
cooperative and single-threaded: Python runs signal handlers in the main
thread between bytecodes, so the handler and the protected block never run
concurrently.
"""

from __future__ import annotations

import signal
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from types import FrameType

from relman.core.errors import ErrorCode
from relman.output.console import ConsoleProtocol

__all__ = ["InterruptionGuard"]

_Handler = Callable[[int, FrameType | None], object] | int | None

_GUARDED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class InterruptionGuard:
    """Defers termination requests while locked.

    Args:
        console: Where the exit notice is printed.
        terminate: Called to actually terminate. Defaults to raising
            ``SystemExit(130)``; tests inject a recorder.
    """

    def __init__(
        self,
        console: ConsoleProtocol,
        *,
        terminate: Callable[[], None] | None = None,
    ) -> None:
        self._console = console
        self._terminate = terminate or self._exit
        self._locked = False
        self._requested = False
        self._previous: dict[int, _Handler] = {}

    @property
    def locked(self) -> bool:
        return self._locked

    @property
    def termination_requested(self) -> bool:
        return self._requested

    def lock(self) -> None:
        self._locked = True

    def unlock(self) -> None:
        self._locked = False
        if self._requested:
            self._fire()

    def request_termination(self) -> None:
        self._requested = True
        if not self._locked:
            self._fire()

    @contextmanager
    def protected(self) -> Iterator[None]:
        """Run the block with termination deferred until it finishes."""
        self.lock()
        try:
            yield
        finally:
            self.unlock()

    def install(self) -> None:
        """Route SIGINT and SIGTERM through this guard."""
        for signum in _GUARDED_SIGNALS:
            self._previous[signum] = signal.getsignal(signum)
            signal.signal(signum, self._handle_signal)

    def uninstall(self) -> None:
        for signum, handler in self._previous.items():
            signal.signal(signum, handler if handler is not None else signal.SIG_DFL)
        self._previous.clear()

    def _handle_signal(self, signum: int, frame: FrameType | None) -> None:
        self.request_termination()

    def _fire(self) -> None:
        self._console.print("Caught interrupt signal. Exiting...")
        self._terminate()

    @staticmethod
    def _exit() -> None:
        raise SystemExit(int(ErrorCode.INTERRUPTED))
