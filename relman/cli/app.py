from __future__ import annotations

from pathlib import Path

import typer

from relman import __version__
from relman.cli.commands.release import (
    build,
    deploy,
    link,
    list_releases,
    prune,
    rebuild,
    rollback,
    update,
)
from relman.cli.context import GlobalOptions
from relman.core.config import install_example_config, resolve_config_path
from relman.core.errors import ErrorCode
from relman.core.result import Err


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Build, link and roll back multi-repository releases.",
)


# Commands
app.command()(build)
app.command()(rebuild)
app.command()(update)
app.command()(link)
app.command()(deploy)
app.command()(rollback)
app.command("list")(list_releases)
app.command()(prune)


@app.callback(invoke_without_command=True)
def _main(  # pyright: ignore[reportUnusedFunction]
    ctx: typer.Context,
    target: str | None = typer.Option(
        None, "--target", "-t", help="Target to operate on (default: config default_target)"
    ),
    no_hooks: bool = typer.Option(False, "--no-hooks", "-n", help="Do not run hooks"),
    no_copy: bool = typer.Option(
        False, "--no-copy", "-c", help="Do not copy dependency dirs into new releases"
    ),
    config: Path | None = typer.Option(
        None, "--config", help="Config file (default: $RELMAN_CONFIG or user config)"
    ),
    configure: bool = typer.Option(
        False, "--configure", help="Write the example config file and exit."
    ),
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    if configure:
        dest = resolve_config_path(config)
        result = install_example_config(dest)
        if isinstance(result, Err):
            typer.echo(f"error: {result.error.message}", err=True)
            if result.error.hint:
                typer.echo(f"hint: {result.error.hint}", err=True)
            raise typer.Exit(code=int(ErrorCode.ENV_ERROR))
        typer.echo(f"Example config written to {dest}")
        raise typer.Exit(code=0)

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=0)

    ctx.obj = GlobalOptions(
        target=target.strip() if target else None,
        run_hooks=not no_hooks,
        copy_forward=not no_copy,
        config_path=config,
    )


def main() -> None:
    app()
