from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import typer

from relman.core.config import Config, TargetConfig, load_config, resolve_config_path
from relman.core.errors import ErrorCode
from relman.core.result import Err
from relman.output.console import ConsoleProtocol, RichConsole, Style


@dataclass(frozen=True, slots=True)
class GlobalOptions:
    """Options given before the command name."""

    target: str | None = None
    run_hooks: bool = True
    copy_forward: bool = True
    config_path: Path | None = None


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: Config
    target: TargetConfig
    console: ConsoleProtocol
    options: GlobalOptions


def options_from(ctx: typer.Context) -> GlobalOptions:
    obj: object = ctx.obj
    if isinstance(obj, GlobalOptions):
        return obj
    return GlobalOptions()


def build_context(
    options: GlobalOptions,
    console: ConsoleProtocol | None = None,
) -> CLIContext:
    console = console or RichConsole()

    config_path = resolve_config_path(options.config_path)
    config_result = load_config(config_path)
    if isinstance(config_result, Err):
        error = config_result.error
        console.error(error.message)
        if error.hint:
            console.print(f"hint: {error.hint}", Style.DIM)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    config = config_result.value
    target = config.target(options.target)
    if target is None:
        name = options.target or config.default_target
        console.error(f"Unknown target '{name}' (config: {config_path})")
        known = ", ".join(sorted(config.targets)) or "none"
        console.print(f"hint: configured targets: {known}", Style.DIM)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    return CLIContext(config=config, target=target, console=console, options=options)
