# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Implementation of the ``xtask aliases`` command."""

from __future__ import annotations

import typer
from rich.table import Table

from ....aliases import AliasTable
from ....errors import XtaskError
from ....profiles import ProfileResolver
from ...shared import get_state


def aliases_command(ctx: typer.Context) -> None:
    """List configured aliases and per-target toolchain overrides."""

    state = get_state(ctx)
    try:
        config = state.config()
        table = config.alias_table()
        profiles = config.profile_resolver()
    except XtaskError as exc:
        state.logger.fail(str(exc))
        raise typer.Exit(code=exc.exit_code) from exc

    console = state.logger.console()
    console.print(_alias_table(table))
    if profiles.profiles:
        console.print(_profile_table(profiles))
    raise typer.Exit(code=0)


def _alias_table(aliases: AliasTable) -> Table:
    table = Table(title="Aliases", show_lines=False)
    table.add_column("Name", style="bold", no_wrap=True)
    table.add_column("Command", overflow="fold")
    table.add_column("Arguments", no_wrap=True)
    for name in sorted(aliases):
        entry = aliases[name]
        table.add_row(name, entry.render(), "yes" if entry.accepts_trailing_args else "no")
    return table


def _profile_table(profiles: ProfileResolver) -> Table:
    table = Table(title="Toolchain profiles")
    table.add_column("Target", style="bold", no_wrap=True)
    table.add_column("Variable", overflow="fold")
    table.add_column("Value", no_wrap=True)
    for profile in profiles.profiles:
        for key, value in sorted(profile.environment_overrides.items()):
            table.add_row(profile.target_triple, key, value)
    return table


__all__ = ["aliases_command"]
