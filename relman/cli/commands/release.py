"""Release lifecycle commands: build, deploy, link, update, rollback, rebuild, list, prune."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager

import typer

from relman.cli.commands._helpers import exit_on_error, fail, link_command
from relman.cli.context import CLIContext, build_context, options_from
from relman.core.result import Err, Ok
from relman.release.guard import InterruptionGuard
from relman.services.lifecycle import LifecycleService


def _ask(message: str) -> bool:
    return typer.confirm(message, default=True)


def _yes(_message: str) -> bool:
    return True


@contextmanager
def _session(
    cli: CLIContext,
    *,
    confirm: Callable[[str], bool] = _ask,
) -> Iterator[LifecycleService]:
    """Open the target for one command and release it afterwards."""
    guard = InterruptionGuard(cli.console)
    service = LifecycleService(
        config=cli.config,
        target=cli.target,
        console=cli.console,
        guard=guard,
        confirm=confirm,
        run_hooks=cli.options.run_hooks,
        copy_forward=cli.options.copy_forward,
    )

    opened = service.open()
    if isinstance(opened, Err):
        fail(cli, opened.error)

    guard.install()
    try:
        yield service
    finally:
        guard.uninstall()
        service.close()


def build(
    ctx: typer.Context,
    branches: list[str] | None = typer.Argument(
        None, help="Branch per repository, in config order (default: last built branch)"
    ),
) -> None:
    """Build a new release. Production links are not touched."""
    cli = build_context(options_from(ctx))
    with _session(cli) as service:
        match service.build(branches or []):
            case Err(error):
                fail(cli, error)
            case Ok(release):
                cli.console.print("Build complete. When you are ready, just run:")
                cli.console.print(f"$ {link_command(cli, release)}")


def deploy(
    ctx: typer.Context,
    branches: list[str] | None = typer.Argument(
        None, help="Branch per repository, in config order (default: last built branch)"
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Link without asking"),
) -> None:
    """Build a new release, confirm, then link it."""
    cli = build_context(options_from(ctx))
    with _session(cli, confirm=_yes if yes else _ask) as service:
        match service.deploy(branches or []):
            case Err(error):
                fail(cli, error)
            case Ok(report) if not report.linked:
                cli.console.print("Linking skipped. When you are ready, just run:")
                cli.console.print(f"$ {link_command(cli, report.release)}")
            case Ok(_):
                pass


def link(
    ctx: typer.Context,
    release: str = typer.Argument(..., help="Release id (see `relman list`)"),
) -> None:
    """Point every production link at an existing release."""
    cli = build_context(options_from(ctx))
    with _session(cli) as service:
        exit_on_error(service.link(release), cli)


def update(ctx: typer.Context) -> None:
    """Pull and rebuild the live release in place."""
    cli = build_context(options_from(ctx))
    with _session(cli) as service:
        exit_on_error(service.update(), cli)


def rollback(ctx: typer.Context) -> None:
    """Link every repository to the release before its current one."""
    cli = build_context(options_from(ctx))
    with _session(cli) as service:
        exit_on_error(service.rollback(), cli)


def rebuild(ctx: typer.Context) -> None:
    """Re-run the build scripts of the live release."""
    cli = build_context(options_from(ctx))
    with _session(cli) as service:
        exit_on_error(service.rebuild(), cli)


def list_releases(ctx: typer.Context) -> None:
    """Show releases; `*` marks the live one."""
    cli = build_context(options_from(ctx))
    with _session(cli) as service:
        service.list_releases()


def prune(
    ctx: typer.Context,
    spec: str | None = typer.Argument(
        None, help="Releases to keep (number, default 10) or 'all' to remove every unused one"
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Delete without asking"),
) -> None:
    """Delete old releases that no repository is linked to."""
    cli = build_context(options_from(ctx))
    with _session(cli, confirm=_yes if yes else _ask) as service:
        exit_on_error(service.prune(spec), cli)
