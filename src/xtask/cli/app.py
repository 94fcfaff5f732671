# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""CLI application entry point wiring commands and alias dispatch."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Annotated

import click
import typer

from ..constants import EXIT_INTERRUPTED, INSTALL_COMMAND, PROG_NAME
from ..dispatch import Dispatcher
from ..errors import XtaskError
from ..logging import configure_verbose_logging
from .commands import register_commands
from .shared import CLIState, build_cli_logger, get_state
from .typer_ext import DispatchingGroup, create_typer


class XtaskGroup(DispatchingGroup):
    """Root group sending unregistered names to the alias dispatcher."""

    def invoke_passthrough(self, ctx: click.Context, name: str, args: list[str]) -> int:
        state = get_state(ctx)
        try:
            dispatcher = build_dispatcher(state)
            if state.dry_run:
                typer.echo(dispatcher.plan(name, args).render())
                return 0
            result = dispatcher.dispatch(name, args)
        except XtaskError as exc:
            state.logger.fail(str(exc))
            return exc.exit_code
        except KeyboardInterrupt:
            return EXIT_INTERRUPTED
        return result.process_exit_code


app = create_typer(
    cls=XtaskGroup,
    name=PROG_NAME,
    help="Run workspace command aliases and install developer tooling.",
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", "-n", help="Print the resolved command instead of running it."),
    ] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log resolution details to stderr.")] = False,
    emoji: Annotated[bool, typer.Option("--emoji/--no-emoji", help="Toggle emoji in CLI output.")] = True,
    no_color: Annotated[bool, typer.Option("--no-color", help="Disable ANSI colour output.")] = False,
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Configuration file used instead of xtask.toml."),
    ] = None,
    root: Annotated[
        Path,
        typer.Option("--root", "-r", help="Workspace root for configuration and spawned commands."),
    ] = Path("."),
) -> None:
    """Run workspace command aliases and install developer tooling."""

    if verbose:
        configure_verbose_logging()
    ctx.obj = CLIState(
        root=root.resolve(),
        config_path=config,
        dry_run=dry_run,
        verbose=verbose,
        logger=build_cli_logger(emoji=emoji, no_color=no_color),
    )


register_commands(app)


def build_dispatcher(state: CLIState) -> Dispatcher:
    """Return a dispatcher for the configuration selected by ``state``.

    Raises:
        ConfigError: If the configuration cannot be loaded.
    """

    prefix = _global_arguments(state)

    def _install(args: Sequence[str]) -> int:
        return run_cli([*prefix, INSTALL_COMMAND, *args])

    return Dispatcher.from_config(state.config(), builtins={INSTALL_COMMAND: _install}, cwd=state.root)


def _global_arguments(state: CLIState) -> list[str]:
    arguments = ["--root", str(state.root)]
    if state.config_path is not None:
        arguments.extend(["--config", str(state.config_path)])
    if state.dry_run:
        arguments.append("--dry-run")
    if not state.logger.use_emoji:
        arguments.append("--no-emoji")
    if state.logger.use_color is False:
        arguments.append("--no-color")
    return arguments


def run_cli(argv: Sequence[str]) -> int:
    """Run the CLI in-process and return its exit status instead of exiting."""

    command = typer.main.get_command(app)
    try:
        result = command.main(args=list(argv), prog_name=PROG_NAME, standalone_mode=False)
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except typer.Abort:
        return EXIT_INTERRUPTED
    return result if isinstance(result, int) else 0


def main(argv: Sequence[str] | None = None) -> None:
    """Console-script entry point."""

    app(args=list(argv) if argv is not None else None, prog_name=PROG_NAME)


__all__ = ["XtaskGroup", "app", "build_dispatcher", "main", "run_cli"]
