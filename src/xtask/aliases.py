# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Alias table mapping short command names to invocation templates."""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Final

from .constants import ARGS_PLACEHOLDER
from .errors import ArgumentsNotAcceptedError, UnknownAliasError

CLIPPY_ALLOWED_LINTS: Final[tuple[str, ...]] = (
    "clippy::collapsible_if",
    "clippy::needless_pass_by_value",
    "clippy::nonminimal_bool",
    "clippy::redundant_pattern_matching",
)

_XTASK_RUN: Final[tuple[str, ...]] = ("cargo", "run", "--package", "xtask", "--bin", "xtask", "--")


@dataclass(frozen=True, slots=True)
class AliasEntry:
    """Named invocation template.

    Attributes:
        name: Unique, case-sensitive alias name.
        template: Command tokens; ``{args}`` marks where trailing arguments go.
        accepts_trailing_args: Whether callers may append arguments.
    """

    name: str
    template: tuple[str, ...]
    accepts_trailing_args: bool = True

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("alias name must be non-empty")
        literals = [token for token in self.template if token != ARGS_PLACEHOLDER]
        if not literals:
            raise ValueError(f"alias '{self.name}' requires at least one command token")
        if self.template[0] == ARGS_PLACEHOLDER:
            raise ValueError(f"alias '{self.name}' must start with a command, not {ARGS_PLACEHOLDER}")
        placeholders = len(self.template) - len(literals)
        if placeholders > 1:
            raise ValueError(f"alias '{self.name}' may contain at most one {ARGS_PLACEHOLDER} placeholder")
        if placeholders and not self.accepts_trailing_args:
            raise ValueError(f"alias '{self.name}' has a {ARGS_PLACEHOLDER} placeholder but rejects arguments")

    @property
    def command(self) -> str:
        """Return the executable named by the template."""

        return self.template[0]

    @property
    def has_placeholder(self) -> bool:
        return ARGS_PLACEHOLDER in self.template

    def build_argv(self, extra_args: Sequence[str] = ()) -> list[str]:
        """Return the final argument vector with ``extra_args`` merged in.

        Trailing arguments replace the ``{args}`` placeholder in place, or are
        appended after the last token when the template has no placeholder.

        Args:
            extra_args: Caller-supplied arguments forwarded verbatim.

        Returns:
            list[str]: Argument vector ready for execution.

        Raises:
            ArgumentsNotAcceptedError: If arguments are supplied to an alias
                that does not accept them.
        """

        extras = list(extra_args)
        if extras and not self.accepts_trailing_args:
            raise ArgumentsNotAcceptedError(self.name, extras)
        if not self.has_placeholder:
            return [*self.template, *extras]
        argv: list[str] = []
        for token in self.template:
            if token == ARGS_PLACEHOLDER:
                argv.extend(extras)
            else:
                argv.append(token)
        return argv

    def render(self) -> str:
        """Return the template as a single display string."""

        return " ".join(self.template)


class AliasTable(Mapping[str, AliasEntry]):
    """Read-only, exact-match lookup of :class:`AliasEntry` objects by name."""

    __slots__ = ("_entries",)

    def __init__(self, entries: Sequence[AliasEntry] = ()) -> None:
        """Build the table from ``entries``.

        Args:
            entries: Alias entries; names must be unique.

        Raises:
            ValueError: If two entries share a name.
        """

        collected: dict[str, AliasEntry] = {}
        for entry in entries:
            if entry.name in collected:
                raise ValueError(f"duplicate alias '{entry.name}'")
            collected[entry.name] = entry
        self._entries: Mapping[str, AliasEntry] = MappingProxyType(collected)

    def resolve(self, name: str) -> AliasEntry:
        """Return the entry registered under exactly ``name``.

        Args:
            name: Alias name; matched case-sensitively with no prefix matching.

        Returns:
            AliasEntry: The configured entry.

        Raises:
            UnknownAliasError: If no entry carries ``name``.
        """

        try:
            return self._entries[name]
        except KeyError:
            raise UnknownAliasError(name) from None

    def __getitem__(self, name: str) -> AliasEntry:
        return self._entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"AliasTable({sorted(self._entries)!r})"


DEFAULT_ALIASES: Final[tuple[AliasEntry, ...]] = (
    AliasEntry("xtask", (*_XTASK_RUN, ARGS_PLACEHOLDER)),
    AliasEntry("install-ra", (*_XTASK_RUN, "install", ARGS_PLACEHOLDER)),
    AliasEntry("tq", ("cargo", "test", ARGS_PLACEHOLDER, "--", "-q")),
    AliasEntry("qt", ("cargo", "test", ARGS_PLACEHOLDER, "--", "-q")),
    AliasEntry(
        "lint",
        (
            "cargo",
            "clippy",
            "--all-targets",
            "--",
            *(f"-A{lint}" for lint in CLIPPY_ALLOWED_LINTS),
            "--cap-lints",
            "warn",
        ),
        accepts_trailing_args=False,
    ),
)


def default_alias_table() -> AliasTable:
    """Return a table holding :data:`DEFAULT_ALIASES`."""

    return AliasTable(DEFAULT_ALIASES)


__all__ = [
    "DEFAULT_ALIASES",
    "AliasEntry",
    "AliasTable",
    "default_alias_table",
]
