# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Typer helpers providing sorted help output and passthrough subcommands."""

from __future__ import annotations

from abc import ABCMeta, abstractmethod
from collections.abc import Callable, Iterable
from typing import Any, Final, TypeVar

import click
import typer
from click.core import Context, Parameter
from click.formatting import HelpFormatter
from typer.core import TyperCommand, TyperGroup

ARGUMENT_PARAM_TYPE: Final[str] = "argument"

PassthroughHandler = Callable[[Context, str, list[str]], int]


class SortedTyperCommand(TyperCommand):
    """Typer command that renders options in sorted order within help output."""

    def format_options(self, ctx: Context, formatter: HelpFormatter) -> None:
        _write_sorted_parameters(self, ctx, formatter)


class SortedTyperGroup(TyperGroup):
    """Typer group that sorts its own options and defaults to :class:`SortedTyperCommand`."""

    command_class = SortedTyperCommand

    def format_options(self, ctx: Context, formatter: HelpFormatter) -> None:
        _write_sorted_parameters(self, ctx, formatter)
        self.format_commands(ctx, formatter)


def _write_sorted_parameters(command: click.Command, ctx: Context, formatter: HelpFormatter) -> None:
    """Render positional arguments and sorted options within CLI help.

    Args:
        command: Command whose parameters are rendered.
        ctx: Click context describing the application invocation.
        formatter: Click help formatter used to emit definition lists.
    """

    argument_records: list[tuple[str, str]] = []
    option_entries: list[tuple[tuple[str, int], tuple[str, str]]] = []

    for index, param in enumerate(command.get_params(ctx)):
        record = param.get_help_record(ctx)
        if record is None:
            continue
        if getattr(param, "param_type_name", "") == ARGUMENT_PARAM_TYPE:
            argument_records.append(record)
            continue
        option_entries.append(((_primary_option_name(param), index), record))

    if argument_records:
        with formatter.section("Arguments"):
            formatter.write_dl(argument_records)

    if option_entries:
        sorted_records = [entry for _, entry in sorted(option_entries, key=lambda item: item[0])]
        with formatter.section("Options"):
            formatter.write_dl(sorted_records)


class PassthroughCommand(click.Command):
    """Click command that forwards every remaining token untouched.

    Options such as ``--help`` or ``--`` belong to the dispatched program, so
    argument parsing is disabled entirely and the raw tokens land in ``ctx.args``.
    """

    def __init__(self, name: str, *, handler: PassthroughHandler) -> None:
        super().__init__(name, add_help_option=False, help=f"Run the '{name}' alias.")
        self._handler = handler

    def parse_args(self, ctx: Context, args: list[str]) -> list[str]:
        ctx.args = list(args)
        return ctx.args

    def invoke(self, ctx: Context) -> Any:
        raise typer.Exit(code=self._handler(ctx, self.name or "", list(ctx.args)))


class DispatchingGroup(SortedTyperGroup, metaclass=ABCMeta):
    """Group resolving unregistered subcommand names through :meth:`invoke_passthrough`.

    Registered commands keep their normal parsing; any other name becomes a
    :class:`PassthroughCommand` carrying the rest of the command line.
    """

    def resolve_command(
        self,
        ctx: Context,
        args: list[str],
    ) -> tuple[str | None, click.Command | None, list[str]]:
        name = click.utils.make_str(args[0])
        if self.get_command(ctx, name) is not None:
            return super().resolve_command(ctx, args)
        return name, PassthroughCommand(name, handler=self.invoke_passthrough), args[1:]

    @abstractmethod
    def invoke_passthrough(self, ctx: Context, name: str, args: list[str]) -> int:
        """Execute ``name`` with ``args`` and return the process exit status."""


CommandCallback = TypeVar("CommandCallback", bound=Callable[..., Any])


class SortedTyper(typer.Typer):
    """Typer application that emits sorted option listings by default."""

    def __init__(self, *args: Any, cls: type[TyperGroup] | None = None, **kwargs: Any) -> None:
        """Initialise the Typer application with sorted help semantics.

        Args:
            *args: Positional arguments forwarded to :class:`typer.Typer`.
            cls: Optional group class to override the default sorted group.
            **kwargs: Keyword arguments forwarded to :class:`typer.Typer`.
        """

        super().__init__(*args, cls=cls or SortedTyperGroup, **kwargs)

    def command(
        self,
        name: str | None = None,
        *,
        cls: type[TyperCommand] | None = None,
        **kwargs: Any,
    ) -> Callable[[CommandCallback], CommandCallback]:
        """Return a decorator that registers commands using sorted help output."""

        return super().command(name, cls=cls or SortedTyperCommand, **kwargs)


def create_typer(*, cls: type[TyperGroup] | None = None, **kwargs: Any) -> SortedTyper:
    """Return a :class:`SortedTyper` rendering plain (non-Rich) sorted help.

    Args:
        cls: Optional Typer group subclass controlling command resolution.
        **kwargs: Additional arguments forwarded to :class:`SortedTyper`.

    Returns:
        SortedTyper: Configured Typer application.
    """

    kwargs.setdefault("rich_markup_mode", None)
    return SortedTyper(cls=cls, **kwargs)


def _primary_option_name(param: Parameter) -> str:
    option_names: Iterable[str] = tuple(getattr(param, "opts", ())) + tuple(getattr(param, "secondary_opts", ()))
    long_names = [name for name in option_names if name.startswith("--")]
    candidate = long_names[0] if long_names else (next(iter(option_names), "") or param.name or "")
    return candidate.lstrip("-").lower()


__all__ = [
    "DispatchingGroup",
    "PassthroughCommand",
    "PassthroughHandler",
    "SortedTyper",
    "SortedTyperCommand",
    "SortedTyperGroup",
    "create_typer",
]
