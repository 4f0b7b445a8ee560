from __future__ import annotations

from pathlib import Path

import pytest
import typer

from relman.cli.commands._helpers import error_code_for, exit_on_error, link_command
from relman.cli.context import CLIContext, GlobalOptions
from relman.core.config import Config, TargetConfig
from relman.core.errors import ErrorCode
from relman.core.result import Err, Ok
from relman.output.console import MockConsole
from relman.release.errors import ReleaseError


def _ctx(target: str | None = None) -> CLIContext:
    return CLIContext(
        config=Config(base_dir=Path("/srv/deploy")),
        target=TargetConfig(name="prod"),
        console=MockConsole(),
        options=GlobalOptions(target=target),
    )


@pytest.mark.parametrize(
    ("kind", "code"),
    [
        ("invalid_input", ErrorCode.USER_ERROR),
        ("release_missing", ErrorCode.USER_ERROR),
        ("no_state", ErrorCode.USER_ERROR),
        ("base_dir_missing", ErrorCode.ENV_ERROR),
        ("locked", ErrorCode.ENV_ERROR),
        ("git_failed", ErrorCode.BUILD_ERROR),
        ("build_failed", ErrorCode.BUILD_ERROR),
        ("link_failed", ErrorCode.IO_ERROR),
        ("prune_failed", ErrorCode.IO_ERROR),
    ],
)
def test_error_code_for(kind: str, code: ErrorCode) -> None:
    error = ReleaseError(kind=kind, message="x")  # type: ignore[arg-type]
    assert error_code_for(error) == code


def test_exit_on_error_reports_and_exits() -> None:
    ctx = _ctx()
    error = ReleaseError(kind="no_state", message="nothing linked", hint="link a release first")

    with pytest.raises(typer.Exit) as exc_info:
        exit_on_error(Err(error), ctx)

    assert exc_info.value.exit_code == 1
    console = ctx.console
    assert isinstance(console, MockConsole)
    assert console.messages == ["error: nothing linked", "hint: link a release first"]


def test_exit_on_error_ok_returns() -> None:
    ctx = _ctx()
    exit_on_error(Ok(1), ctx)
    assert isinstance(ctx.console, MockConsole)
    assert ctx.console.outputs == []


def test_link_command() -> None:
    assert link_command(_ctx(), "20240101000000") == "relman link 20240101000000"
    assert link_command(_ctx("test"), "20240101000000") == "relman -t test link 20240101000000"
