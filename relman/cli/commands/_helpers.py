"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn, TypeVar

import typer

from relman.core.errors import ErrorCode
from relman.core.result import Err, Result
from relman.output.console import Style
from relman.release.errors import ReleaseError, ReleaseErrorKind

if TYPE_CHECKING:
    from relman.cli.context import CLIContext

T = TypeVar("T")
E = TypeVar("E")


_KIND_CODES: dict[ReleaseErrorKind, ErrorCode] = {
    "invalid_input": ErrorCode.USER_ERROR,
    "no_state": ErrorCode.USER_ERROR,
    "no_branch": ErrorCode.USER_ERROR,
    "release_missing": ErrorCode.USER_ERROR,
    "no_previous_release": ErrorCode.USER_ERROR,
    "base_dir_missing": ErrorCode.ENV_ERROR,
    "locked": ErrorCode.ENV_ERROR,
    "no_repos": ErrorCode.ENV_ERROR,
    "release_exists": ErrorCode.BUILD_ERROR,
    "git_failed": ErrorCode.BUILD_ERROR,
    "build_failed": ErrorCode.BUILD_ERROR,
    "link_failed": ErrorCode.IO_ERROR,
    "prune_failed": ErrorCode.IO_ERROR,
}


def error_code_for(error: ReleaseError) -> ErrorCode:
    return _KIND_CODES.get(error.kind, ErrorCode.BUILD_ERROR)


def exit_on_error(
    result: Result[T, E],
    ctx: CLIContext,
    error_code: ErrorCode = ErrorCode.BUILD_ERROR,
) -> None:
    """Exit with error if result is Err, otherwise return.

    Expects error objects to have 'message' and optional 'hint' attributes.
    A ``ReleaseError`` picks its own exit code from its kind.
    """
    if isinstance(result, Err):
        fail(ctx, result.error, error_code)


def fail(
    ctx: CLIContext,
    error: object,
    error_code: ErrorCode = ErrorCode.BUILD_ERROR,
) -> NoReturn:
    """Report ``error`` on the console and exit."""
    message: str = getattr(error, "message", str(error))
    hint: str | None = getattr(error, "hint", None)
    ctx.console.error(message)
    if hint:
        ctx.console.print(f"hint: {hint}", Style.DIM)
    if isinstance(error, ReleaseError):
        error_code = error_code_for(error)
    raise typer.Exit(code=int(error_code))


def link_command(ctx: CLIContext, release: str) -> str:
    """The command an operator runs to link ``release`` later."""
    target = f" -t {ctx.options.target}" if ctx.options.target else ""
    return f"relman{target} link {release}"
