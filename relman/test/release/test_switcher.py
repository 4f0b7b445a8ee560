from __future__ import annotations

import os
from pathlib import Path

import pytest

from relman.core.layout import TargetLayout
from relman.core.result import Err, Ok
from relman.output.console import MockConsole
from relman.release.guard import InterruptionGuard
from relman.release.state import RepoState, StateStore
from relman.release.switcher import LinkSwitcher


class Recorder:
    def __init__(self) -> None:
        self.calls = 0

    def __call__(self) -> None:
        self.calls += 1


@pytest.fixture
def layout(tmp_path: Path) -> TargetLayout:
    layout = TargetLayout(base_dir=tmp_path, target="prod")
    layout.ensure_dirs()
    for release in ("r1", "r2"):
        layout.release_dir(release, "api").mkdir(parents=True)
    return layout


def _switcher(
    layout: TargetLayout, guard: InterruptionGuard | None = None
) -> tuple[LinkSwitcher, StateStore, MockConsole]:
    console = MockConsole()
    store = StateStore(layout)
    switcher = LinkSwitcher(
        layout=layout,
        store=store,
        guard=guard or InterruptionGuard(console, terminate=Recorder()),
        console=console,
    )
    return switcher, store, console


def test_swap_links_and_records_state(layout: TargetLayout) -> None:
    switcher, store, _ = _switcher(layout)

    result = switcher.swap("api", layout.release_dir("r1", "api"), "main")

    assert isinstance(result, Ok)
    assert result.value.old_release == ""
    assert result.value.new_release == "r1"
    link = layout.link_path("api")
    assert link.is_symlink()
    assert Path(os.readlink(link)).is_absolute()
    assert link.resolve() == layout.release_dir("r1", "api").resolve()
    assert store.read("api") == RepoState("r1", "main")


def test_successive_swaps_point_at_latest(layout: TargetLayout) -> None:
    switcher, store, _ = _switcher(layout)

    switcher.swap("api", layout.release_dir("r1", "api"), "main")
    result = switcher.swap("api", layout.release_dir("r2", "api"), "dev")

    assert isinstance(result, Ok)
    assert result.value.old_release == "r1"
    assert result.value.old_branch == "main"
    assert layout.link_path("api").resolve() == layout.release_dir("r2", "api").resolve()
    assert store.read("api") == RepoState("r2", "dev")


def test_missing_release_dir(layout: TargetLayout) -> None:
    switcher, store, _ = _switcher(layout)

    result = switcher.swap("api", layout.release_dir("r9", "api"), "main")

    assert isinstance(result, Err)
    assert result.error.kind == "release_missing"
    assert not layout.link_path("api").is_symlink()
    assert store.read("api") == RepoState()


def test_real_directory_at_link_path(layout: TargetLayout) -> None:
    switcher, _, _ = _switcher(layout)
    layout.link_path("api").mkdir()

    result = switcher.swap("api", layout.release_dir("r1", "api"), "main")

    assert isinstance(result, Err)
    assert result.error.kind == "link_failed"


def test_interrupt_during_swap_is_deferred(layout: TargetLayout) -> None:
    recorder = Recorder()
    guard = InterruptionGuard(MockConsole(), terminate=recorder)
    switcher, store, _ = _switcher(layout, guard)

    original_write = store.write

    def write_and_interrupt(repo: str, state: RepoState) -> bool:
        guard.request_termination()
        assert recorder.calls == 0
        return original_write(repo, state)

    store.write = write_and_interrupt  # type: ignore[method-assign]

    result = switcher.swap("api", layout.release_dir("r1", "api"), "main")

    assert isinstance(result, Ok)
    assert recorder.calls == 1
    assert StateStore(layout).read("api") == RepoState("r1", "main")


def test_state_write_failure_is_a_warning(
    layout: TargetLayout, monkeypatch: pytest.MonkeyPatch
) -> None:
    switcher, store, console = _switcher(layout)
    monkeypatch.setattr(store, "write", lambda repo, state: False)

    result = switcher.swap("api", layout.release_dir("r1", "api"), "main")

    assert isinstance(result, Ok)
    assert result.value.state_saved is False
    assert console.has_warning()
    assert layout.link_path("api").is_symlink()
