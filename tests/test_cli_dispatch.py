# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""CLI tests for alias passthrough and the aliases listing."""

from __future__ import annotations

import sys
from pathlib import Path

import click
import pytest
import typer
from typer.testing import CliRunner

from helpers.fakes import RecordingRunner
from xtask.cli.app import app, build_dispatcher, run_cli
from xtask.cli.shared import CLIState, build_cli_logger
from xtask.cli.typer_ext import DispatchingGroup
from xtask.errors import ExecutableNotFoundError
from xtask.installer import InstallOutcome, InstallReceipt, InstallStatus, InstallTarget

MSVC_LINKER_VAR = "CARGO_TARGET_X86_64_PC_WINDOWS_MSVC_LINKER"


@pytest.fixture
def patched_runner(monkeypatch) -> RecordingRunner:
    runner = RecordingRunner()
    monkeypatch.setattr("xtask.dispatch.run_passthrough", runner)
    return runner


def _invoke(workspace: Path, *args: str, env: dict[str, str] | None = None):
    return CliRunner().invoke(app, ["--no-emoji", "--root", str(workspace), *args], env=env)


def test_alias_arguments_are_forwarded_verbatim(workspace: Path, patched_runner: RecordingRunner) -> None:
    result = _invoke(workspace, "tq", "--filter", "foo")

    assert result.exit_code == 0, result.output
    argv, options = patched_runner.calls[0]
    assert argv == ["cargo", "test", "--filter", "foo", "--", "-q"]
    assert options.cwd == workspace.resolve()


def test_help_and_separator_belong_to_the_child(workspace: Path, patched_runner: RecordingRunner) -> None:
    result = _invoke(workspace, "xtask", "--help", "--", "extra")

    assert result.exit_code == 0, result.output
    assert patched_runner.calls[0][0][-3:] == ["--help", "--", "extra"]


def test_child_exit_code_becomes_cli_exit_code(workspace: Path, patched_runner: RecordingRunner) -> None:
    patched_runner.exit_code = 101

    result = _invoke(workspace, "qt")

    assert result.exit_code == 101


def test_unknown_command_exits_with_resolution_failure(workspace: Path, patched_runner: RecordingRunner) -> None:
    result = _invoke(workspace, "frobnicate", "--all")

    assert result.exit_code == 2
    assert "unknown command 'frobnicate'" in result.stderr
    assert "unknown command" not in result.stdout
    assert patched_runner.calls == []


def test_rejected_arguments_exit_with_resolution_failure(workspace: Path, patched_runner: RecordingRunner) -> None:
    result = _invoke(workspace, "lint", "--fix")

    assert result.exit_code == 2
    assert "does not accept arguments" in result.stderr
    assert patched_runner.calls == []


def test_missing_executable_exits_127(monkeypatch, workspace: Path) -> None:
    def _missing(args, *, options):
        raise ExecutableNotFoundError(args[0])

    monkeypatch.setattr("xtask.dispatch.run_passthrough", _missing)

    result = _invoke(workspace, "tq")

    assert result.exit_code == 127
    assert "'cargo' was not found" in result.stderr


def test_build_target_environment_selects_windows_profile(workspace: Path, patched_runner: RecordingRunner) -> None:
    result = _invoke(workspace, "tq", env={"CARGO_BUILD_TARGET": "x86_64-pc-windows-msvc"})

    assert result.exit_code == 0, result.output
    assert patched_runner.calls[0][1].env[MSVC_LINKER_VAR] == "rust-lld"


def test_dry_run_prints_plan_without_spawning(workspace: Path, patched_runner: RecordingRunner) -> None:
    result = _invoke(workspace, "--dry-run", "tq", "--filter", "foo", env={"CARGO_BUILD_TARGET": ""})

    assert result.exit_code == 0, result.output
    assert "cargo test --filter foo -- -q" in result.stdout
    assert patched_runner.calls == []


def test_configured_aliases_are_dispatched(workspace: Path, patched_runner: RecordingRunner) -> None:
    (workspace / "xtask.toml").write_text('[alias]\nb = "cargo build {args} --release"\n', encoding="utf-8")

    result = _invoke(workspace, "b", "-p", "core")

    assert result.exit_code == 0, result.output
    assert patched_runner.calls[0][0] == ["cargo", "build", "-p", "core", "--release"]


def test_invalid_configuration_exits_with_resolution_failure(workspace: Path, patched_runner: RecordingRunner) -> None:
    (workspace / "xtask.toml").write_text('[alias]\ninstall = "cargo install"\n', encoding="utf-8")

    result = _invoke(workspace, "tq")

    assert result.exit_code == 2
    assert "shadows a built-in" in result.stderr


def test_aliases_command_lists_table(workspace: Path) -> None:
    result = _invoke(workspace, "aliases")

    assert result.exit_code == 0, result.output
    for name in ("install-ra", "lint", "qt", "tq", "xtask"):
        assert name in result.stdout
    assert "rust-lld" in result.stdout


def test_root_help_lists_sorted_options(workspace: Path) -> None:
    result = CliRunner().invoke(app, ["--help"])

    assert result.exit_code == 0
    assert result.stdout.index("--config") < result.stdout.index("--dry-run") < result.stdout.index("--root")
    assert "install" in result.stdout


def test_dispatcher_builtin_install_runs_cli_command(monkeypatch, workspace: Path, tmp_path: Path) -> None:
    seen = []

    def fake_install(request, **kwargs) -> InstallOutcome:
        seen.append(request)
        target = InstallTarget("rust-analyzer", request.version, "x86_64-unknown-linux-gnu", "url", tmp_path / "ra")
        receipt = InstallReceipt(
            tool="rust-analyzer",
            version=request.version,
            platform_key="x86_64-unknown-linux-gnu",
            source="url",
            sha256="0" * 64,
        )
        return InstallOutcome(InstallStatus.INSTALLED, target, receipt)

    monkeypatch.setattr("xtask.cli.commands.install.command.install_tool", fake_install)
    state = CLIState(root=workspace, logger=build_cli_logger(emoji=False))

    result = build_dispatcher(state).dispatch("install", ["--version", "nightly"])

    assert result.exit_code == 0
    assert [request.version for request in seen] == ["nightly"]


def test_typer_exceptions_are_click_exceptions() -> None:
    assert typer.Exit is click.exceptions.Exit
    assert typer.Abort is click.Abort
    assert issubclass(typer.BadParameter, click.ClickException)


def test_run_cli_returns_child_exit_code(workspace: Path, patched_runner: RecordingRunner) -> None:
    patched_runner.exit_code = 7

    assert run_cli(["--no-emoji", "--root", str(workspace), "qt"]) == 7
    assert run_cli(["--no-emoji", "--root", str(workspace), "frobnicate"]) == 2


def test_run_cli_returns_usage_error_code(workspace: Path) -> None:
    assert run_cli(["--root", str(workspace), "install", "--retries", "99"]) == 2


def test_no_color_flag_disables_logger_colour(monkeypatch, workspace: Path, patched_runner: RecordingRunner) -> None:
    loggers = []

    def _recording_logger(**kwargs):
        logger = build_cli_logger(**kwargs)
        loggers.append(logger)
        return logger

    monkeypatch.setattr(sys.modules["xtask.cli.app"], "build_cli_logger", _recording_logger)

    result = _invoke(workspace, "--no-color", "qt")

    assert result.exit_code == 0, result.output
    assert [logger.use_color for logger in loggers] == [False]


def test_dispatching_group_requires_passthrough_handler() -> None:
    with pytest.raises(TypeError):
        DispatchingGroup(name="bare")
