from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest

from relman.core.config import RepoConfig
from relman.core.layout import TargetLayout
from relman.core.result import Err, Ok
from relman.git.repository import Repository
from relman.output.console import MockConsole
from relman.release.index import BRANCH_MARKER
from relman.services.builder import ReleaseBuilder

pytestmark = pytest.mark.skipif(
    shutil.which("git") is None or shutil.which("bash") is None,
    reason="git and bash required",
)

BUILD_SCRIPT = 'git rev-parse --abbrev-ref HEAD > built.txt\n'


def _git(cwd: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=False,
    )
    if result.returncode != 0:
        raise RuntimeError(
            f"git {' '.join(args)} failed (code {result.returncode}): {result.stderr.strip()}"
        )
    return result.stdout.strip()


def _commit(seed: Path, name: str, content: str) -> None:
    (seed / name).write_text(content, encoding="utf-8")
    _git(seed, "add", name)
    _git(seed, "commit", "-m", f"add {name}")


def _init_remote_repo(tmp_path: Path, build_script: str = BUILD_SCRIPT) -> tuple[str, Path]:
    remote = tmp_path / "api.git"
    seed = tmp_path / "api-seed"

    _git(tmp_path, "init", "--bare", "-b", "main", str(remote))

    seed.mkdir()
    _git(seed, "init", "-b", "main")
    _git(seed, "config", "user.email", "test@example.com")
    _git(seed, "config", "user.name", "Test")
    _commit(seed, "build.sh", build_script)

    url = remote.as_uri()
    _git(seed, "remote", "add", "origin", url)
    _git(seed, "push", "-u", "origin", "main")

    _git(seed, "checkout", "-b", "feature")
    _commit(seed, "feature.txt", "f\n")
    _git(seed, "push", "-u", "origin", "feature")
    _git(seed, "checkout", "main")

    return url, seed


def _setup(
    tmp_path: Path, *, build_script: str = BUILD_SCRIPT, copy_dirs: tuple[str, ...] = ()
) -> tuple[ReleaseBuilder, TargetLayout, RepoConfig, Path, MockConsole]:
    url, seed = _init_remote_repo(tmp_path, build_script)
    layout = TargetLayout(base_dir=tmp_path / "deploy", target="prod")
    layout.ensure_dirs()
    repo = RepoConfig(name="api", origin=url, copy_dirs=copy_dirs)
    console = MockConsole()
    return ReleaseBuilder(layout=layout, console=console), layout, repo, seed, console


def test_build_feature_branch(tmp_path: Path) -> None:
    builder, layout, repo, _, _ = _setup(tmp_path)

    result = builder.build(repo, "20240101000000", "feature")

    assert isinstance(result, Ok)
    release_dir = result.value
    assert release_dir == layout.release_dir("20240101000000", "api")
    assert (release_dir / "feature.txt").exists()
    assert (release_dir / "built.txt").read_text(encoding="utf-8").strip() == "feature"
    assert (release_dir / BRANCH_MARKER).read_text(encoding="utf-8") == "feature"

    # working clone is back on its default branch without a local copy of feature
    working = Repository(layout.working_clone("api"))
    assert working.current_branch() == "main"
    assert _git(working.path, "branch", "--list", "feature") == ""


def test_second_build_pulls_new_commits(tmp_path: Path) -> None:
    builder, layout, repo, seed, _ = _setup(tmp_path)
    assert isinstance(builder.build(repo, "20240101000000", "main"), Ok)

    _commit(seed, "later.txt", "x\n")
    _git(seed, "push", "origin", "main")

    result = builder.build(repo, "20240102000000", "main")

    assert isinstance(result, Ok)
    assert (result.value / "later.txt").exists()
    assert not (layout.release_dir("20240101000000", "api") / "later.txt").exists()


def test_unknown_branch_is_a_git_failure(tmp_path: Path) -> None:
    builder, layout, repo, _, _ = _setup(tmp_path)

    result = builder.build(repo, "20240101000000", "no-such-branch")

    assert isinstance(result, Err)
    assert result.error.kind == "git_failed"
    assert not layout.release_dir("20240101000000", "api").exists()


def test_failing_build_script(tmp_path: Path) -> None:
    builder, _, repo, _, _ = _setup(tmp_path, build_script="exit 3\n")

    result = builder.build(repo, "20240101000000", "main")

    assert isinstance(result, Err)
    assert result.error.kind == "build_failed"
    assert result.error.hint is not None
    assert "relman rebuild" in result.error.hint


def test_missing_build_script_is_a_warning(tmp_path: Path) -> None:
    builder, _, _, _, console = _setup(tmp_path)
    url = (tmp_path / "api.git").as_uri()
    repo = RepoConfig(name="api", origin=url, build_script="scripts/missing.sh")

    result = builder.build(repo, "20240101000000", "main")

    assert isinstance(result, Ok)
    assert console.find("No build script")


def test_copy_forward_from_live_release(tmp_path: Path) -> None:
    builder, layout, repo, _, _ = _setup(tmp_path, copy_dirs=("vendor", "node_modules"))
    live = tmp_path / "live-api"
    (live / "vendor" / "lib").mkdir(parents=True)
    (live / "vendor" / "lib" / "dep.txt").write_text("dep\n", encoding="utf-8")
    layout.link_path("api").symlink_to(live, target_is_directory=True)

    result = builder.build(repo, "20240101000000", "main")

    assert isinstance(result, Ok)
    assert (result.value / "vendor" / "lib" / "dep.txt").read_text(encoding="utf-8") == "dep\n"
    assert not (result.value / "node_modules").exists()


def test_copy_forward_disabled(tmp_path: Path) -> None:
    _, layout, repo, _, console = _setup(tmp_path, copy_dirs=("vendor",))
    builder = ReleaseBuilder(layout=layout, console=console, copy_forward=False)
    live = tmp_path / "live-api"
    (live / "vendor").mkdir(parents=True)
    layout.link_path("api").symlink_to(live, target_is_directory=True)

    result = builder.build(repo, "20240101000000", "main")

    assert isinstance(result, Ok)
    assert not (result.value / "vendor").exists()


def test_update_pulls_into_existing_release(tmp_path: Path) -> None:
    builder, _, repo, seed, _ = _setup(tmp_path)
    built = builder.build(repo, "20240101000000", "feature")
    assert isinstance(built, Ok)

    _git(seed, "checkout", "feature")
    _commit(seed, "hotfix.txt", "h\n")
    _git(seed, "push", "origin", "feature")

    result = builder.update(repo, "20240101000000", "feature")

    assert isinstance(result, Ok)
    assert (built.value / "hotfix.txt").exists()


def test_update_missing_release(tmp_path: Path) -> None:
    builder, _, repo, _, _ = _setup(tmp_path)

    result = builder.update(repo, "20240101000000", "main")

    assert isinstance(result, Err)
    assert result.error.kind == "release_missing"
