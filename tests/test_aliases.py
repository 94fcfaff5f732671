# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the alias table and invocation templates."""

from __future__ import annotations

import pytest

from xtask.aliases import AliasEntry, AliasTable, default_alias_table
from xtask.errors import ArgumentsNotAcceptedError, UnknownAliasError


def test_tq_alias_splices_arguments_before_separator() -> None:
    entry = default_alias_table().resolve("tq")

    assert entry.build_argv(["--filter", "foo"]) == ["cargo", "test", "--filter", "foo", "--", "-q"]
    assert entry.build_argv([]) == ["cargo", "test", "--", "-q"]


def test_qt_is_equivalent_to_tq() -> None:
    table = default_alias_table()

    assert table.resolve("qt").template == table.resolve("tq").template


def test_xtask_aliases_forward_arguments_after_cargo_separator() -> None:
    table = default_alias_table()

    assert table.resolve("xtask").build_argv(["dist", "--help"]) == [
        "cargo",
        "run",
        "--package",
        "xtask",
        "--bin",
        "xtask",
        "--",
        "dist",
        "--help",
    ]
    assert table.resolve("install-ra").build_argv(["--force"])[-2:] == ["install", "--force"]


def test_lint_alias_rejects_trailing_arguments() -> None:
    entry = default_alias_table().resolve("lint")

    argv = entry.build_argv()
    assert argv[:4] == ["cargo", "clippy", "--all-targets", "--"]
    assert "-Aclippy::collapsible_if" in argv
    assert argv[-2:] == ["--cap-lints", "warn"]
    with pytest.raises(ArgumentsNotAcceptedError) as excinfo:
        entry.build_argv(["--fix"])
    assert excinfo.value.exit_code == 2


def test_template_without_placeholder_appends_arguments() -> None:
    entry = AliasEntry("b", ("cargo", "build", "--release"))

    assert entry.build_argv(["-p", "core"]) == ["cargo", "build", "--release", "-p", "core"]


def test_resolution_is_exact_and_case_sensitive() -> None:
    table = default_alias_table()

    with pytest.raises(UnknownAliasError):
        table.resolve("TQ")
    with pytest.raises(UnknownAliasError):
        table.resolve("t")
    with pytest.raises(UnknownAliasError) as excinfo:
        table.resolve("")
    assert "unknown alias" in str(excinfo.value)


def test_table_is_read_only_and_rejects_duplicates() -> None:
    table = default_alias_table()

    with pytest.raises(TypeError):
        table["new"] = AliasEntry("new", ("echo",))  # type: ignore[index]
    with pytest.raises(ValueError):
        AliasTable([AliasEntry("a", ("echo",)), AliasEntry("a", ("true",))])


@pytest.mark.parametrize(
    ("template", "accepts"),
    [
        ((), True),
        (("{args}",), True),
        (("{args}", "cargo"), True),
        (("cargo", "{args}", "{args}"), True),
        (("cargo", "{args}"), False),
    ],
)
def test_invalid_templates_are_rejected(template: tuple[str, ...], accepts: bool) -> None:
    with pytest.raises(ValueError):
        AliasEntry("bad", template, accepts)


def test_default_table_contents() -> None:
    assert sorted(default_alias_table()) == ["install-ra", "lint", "qt", "tq", "xtask"]
