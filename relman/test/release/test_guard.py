from __future__ import annotations

import os
import signal

import pytest

from relman.output.console import MockConsole
from relman.release.guard import InterruptionGuard


class Recorder:
    def __init__(self) -> None:
        self.calls = 0

    def __call__(self) -> None:
        self.calls += 1


def _guard() -> tuple[InterruptionGuard, Recorder, MockConsole]:
    console = MockConsole()
    recorder = Recorder()
    return InterruptionGuard(console, terminate=recorder), recorder, console


def test_unlocked_request_terminates_immediately() -> None:
    guard, recorder, console = _guard()

    guard.request_termination()

    assert recorder.calls == 1
    assert console.find("Caught interrupt signal")


def test_locked_request_is_deferred_until_unlock() -> None:
    guard, recorder, _ = _guard()

    guard.lock()
    guard.request_termination()
    assert recorder.calls == 0
    assert guard.termination_requested

    guard.unlock()
    assert recorder.calls == 1


def test_unlock_without_request_does_nothing() -> None:
    guard, recorder, _ = _guard()

    guard.lock()
    guard.unlock()

    assert recorder.calls == 0
    assert not guard.locked


def test_protected_block_defers() -> None:
    guard, recorder, _ = _guard()

    with guard.protected():
        assert guard.locked
        guard.request_termination()
        assert recorder.calls == 0

    assert recorder.calls == 1
    assert not guard.locked


def test_default_terminate_exits_130() -> None:
    guard = InterruptionGuard(MockConsole())

    with pytest.raises(SystemExit) as exc_info:
        guard.request_termination()

    assert exc_info.value.code == 130


def test_installed_handler_routes_sigint() -> None:
    guard, recorder, _ = _guard()
    previous = signal.getsignal(signal.SIGINT)

    guard.install()
    try:
        with guard.protected():
            os.kill(os.getpid(), signal.SIGINT)
            assert recorder.calls == 0
        assert recorder.calls == 1
    finally:
        guard.uninstall()

    assert signal.getsignal(signal.SIGINT) == previous
