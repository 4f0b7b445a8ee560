"""Tests for relman.platform.process module."""

from __future__ import annotations

import sys
from pathlib import Path

from relman.core.result import Err, Ok
from relman.platform.process import ProcessError, run, run_streaming


class TestProcessError:
    def test_str_short_command(self) -> None:
        error = ProcessError(command=("git", "pull"), returncode=1, stdout="", stderr="x")
        assert str(error) == "git pull failed (exit 1)"

    def test_str_long_command_truncated(self) -> None:
        error = ProcessError(
            command=("git", "clone", "file:///a", "/b"), returncode=128, stdout="", stderr=""
        )
        assert str(error) == "git clone file:///a ... failed (exit 128)"

    def test_str_not_started(self) -> None:
        error = ProcessError(command=("nope",), returncode=-1, stdout="", stderr="not found")
        assert str(error) == "nope could not be started: not found"


class TestRun:
    def test_success_returns_stdout(self, tmp_path: Path) -> None:
        result = run([sys.executable, "-c", "print('hello')"], cwd=tmp_path)

        assert isinstance(result, Ok)
        assert result.value.strip() == "hello"

    def test_failure_returns_error(self, tmp_path: Path) -> None:
        result = run(
            [sys.executable, "-c", "import sys; sys.stderr.write('bad'); sys.exit(3)"],
            cwd=tmp_path,
        )

        assert isinstance(result, Err)
        assert result.error.returncode == 3
        assert result.error.stderr == "bad"

    def test_missing_executable(self, tmp_path: Path) -> None:
        result = run(["relman-definitely-not-a-command"], cwd=tmp_path)

        assert isinstance(result, Err)
        assert result.error.returncode == -1

    def test_env_is_passed(self, tmp_path: Path) -> None:
        result = run(
            [sys.executable, "-c", "import os; print(os.environ['RELMAN_TEST'])"],
            cwd=tmp_path,
            env={"RELMAN_TEST": "yes"},
        )

        assert isinstance(result, Ok)
        assert result.value.strip() == "yes"

    def test_timeout(self, tmp_path: Path) -> None:
        result = run(
            [sys.executable, "-c", "import time; time.sleep(5)"], cwd=tmp_path, timeout=0.2
        )

        assert isinstance(result, Err)
        assert "timed out" in result.error.stderr


class TestRunStreaming:
    def test_success(self, tmp_path: Path) -> None:
        result = run_streaming([sys.executable, "-c", "pass"], cwd=tmp_path)
        assert result == Ok(None)

    def test_exit_status_is_checked(self, tmp_path: Path) -> None:
        result = run_streaming([sys.executable, "-c", "raise SystemExit(4)"], cwd=tmp_path)

        assert isinstance(result, Err)
        assert result.error.returncode == 4

    def test_runs_in_cwd(self, tmp_path: Path) -> None:
        cwd = tmp_path / "work"
        cwd.mkdir()

        result = run_streaming([sys.executable, "-c", "open('marker', 'w').close()"], cwd=cwd)

        assert isinstance(result, Ok)
        assert (cwd / "marker").exists()
