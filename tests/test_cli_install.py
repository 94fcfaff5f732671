# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""CLI tests for the install command."""

from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from helpers.fakes import LINUX_HOST
from xtask.cli.app import app
from xtask.errors import InstallStage, NetworkFailureError, NotFoundError
from xtask.installer import InstallOutcome, InstallReceipt, InstallRequest, InstallStatus, InstallTarget


def _outcome(request: InstallRequest, destination: Path, *, status=InstallStatus.INSTALLED, on_path=True):
    target = InstallTarget(
        tool_name=request.tool,
        version=request.version,
        platform_key="x86_64-unknown-linux-gnu",
        source_locator="https://example.invalid/artifact.gz",
        destination_path=destination,
    )
    receipt = InstallReceipt(
        tool=request.tool,
        version=request.version,
        platform_key=target.platform_key,
        source=target.source_locator,
        sha256="0" * 64,
    )
    return InstallOutcome(status=status, target=target, receipt=receipt, on_path=on_path)


def test_install_cli_passes_flags(monkeypatch, workspace: Path, tmp_path: Path) -> None:
    runner = CliRunner()
    calls: list[InstallRequest] = []
    destination = tmp_path / "bin" / "rust-analyzer"

    def fake_install(request: InstallRequest, **kwargs) -> InstallOutcome:
        calls.append(request)
        return _outcome(request, destination)

    monkeypatch.setattr("xtask.cli.commands.install.command.install_tool", fake_install)

    result = runner.invoke(
        app,
        [
            "--no-emoji",
            "--root",
            str(workspace),
            "install",
            "--version",
            "2024-06-03",
            "--force",
            "--dest",
            str(destination),
            "--sha256",
            "ab" * 32,
            "--retries",
            "2",
            "--timeout",
            "5",
        ],
    )

    assert result.exit_code == 0, result.output
    request = calls[0]
    assert request.version == "2024-06-03"
    assert request.force
    assert request.destination == destination
    assert request.sha256 == "ab" * 32
    assert request.retry.attempts == 2
    assert request.timeout == 5.0
    assert f"Installed rust-analyzer 2024-06-03 at {destination}" in result.stdout
    assert "✅" not in result.stdout


def test_install_cli_uses_configured_defaults(monkeypatch, workspace: Path) -> None:
    (workspace / "xtask.toml").write_text(
        '[install]\nversion = "nightly"\nretries = 6\nreleases_url = "https://mirror.example/releases"\n',
        encoding="utf-8",
    )
    calls: list[InstallRequest] = []

    def fake_install(request: InstallRequest, **kwargs) -> InstallOutcome:
        calls.append(request)
        return _outcome(request, workspace / "ra", status=InstallStatus.UP_TO_DATE)

    monkeypatch.setattr("xtask.cli.commands.install.command.install_tool", fake_install)

    result = CliRunner().invoke(app, ["--no-emoji", "--root", str(workspace), "install"])

    assert result.exit_code == 0, result.output
    assert calls[0].version == "nightly"
    assert calls[0].retry.attempts == 6
    assert calls[0].releases_url == "https://mirror.example/releases"
    assert not calls[0].force
    assert "already installed" in result.stdout


def test_install_cli_reports_stage_errors(monkeypatch, workspace: Path) -> None:
    def fake_install(request: InstallRequest, **kwargs) -> InstallOutcome:
        raise NotFoundError("HTTP 404", stage=InstallStage.FETCH, resource="https://example.invalid/x.gz")

    monkeypatch.setattr("xtask.cli.commands.install.command.install_tool", fake_install)

    result = CliRunner().invoke(app, ["--no-emoji", "--root", str(workspace), "install"])

    assert result.exit_code == 1
    assert "NotFound during fetch (https://example.invalid/x.gz): HTTP 404" in result.stderr


def test_install_cli_warns_on_retry_and_missing_path(monkeypatch, workspace: Path, tmp_path: Path) -> None:
    destination = tmp_path / "bin" / "rust-analyzer"

    def fake_install(request: InstallRequest, *, on_retry=None, **kwargs) -> InstallOutcome:
        error = NetworkFailureError("HTTP 503", stage=InstallStage.FETCH, resource="url")
        on_retry(1, error, 0.5)
        return _outcome(request, destination, status=InstallStatus.UPDATED, on_path=False)

    monkeypatch.setattr("xtask.cli.commands.install.command.install_tool", fake_install)

    result = CliRunner().invoke(app, ["--no-emoji", "--root", str(workspace), "install"])

    assert result.exit_code == 0, result.output
    assert "HTTP 503; retrying in 0.5s (attempt 2 of 4)" in result.stderr
    assert f"{destination.parent} is not on PATH" in result.stderr
    assert "Updated rust-analyzer" in result.stdout


def test_install_cli_dry_run_resolves_without_downloading(monkeypatch, workspace: Path, tmp_path: Path) -> None:
    def fake_install(request: InstallRequest, **kwargs) -> InstallOutcome:
        raise AssertionError("dry run must not install")

    monkeypatch.setattr("xtask.cli.commands.install.command.install_tool", fake_install)
    monkeypatch.setattr("xtask.cli.commands.install.command.detect_host", lambda: LINUX_HOST)

    result = CliRunner().invoke(
        app,
        ["--no-emoji", "--dry-run", "--root", str(workspace), "install", "--dest", str(tmp_path / "ra")],
    )

    assert result.exit_code == 0, result.output
    assert "rust-analyzer-x86_64-unknown-linux-gnu.gz" in result.stdout
    assert str(tmp_path / "ra") in result.stdout
    assert not (tmp_path / "ra").exists()


def test_install_cli_rejects_invalid_retry_count(workspace: Path) -> None:
    result = CliRunner().invoke(app, ["--root", str(workspace), "install", "--retries", "0"])

    assert result.exit_code == 2


def test_install_cli_checksum_option_overrides_configured_digest(monkeypatch, workspace: Path) -> None:
    (workspace / "xtask.toml").write_text(f'[install]\nsha256 = "{"a" * 64}"\n', encoding="utf-8")
    calls: list[InstallRequest] = []

    def fake_install(request: InstallRequest, **kwargs) -> InstallOutcome:
        calls.append(request)
        return _outcome(request, workspace / "ra")

    monkeypatch.setattr("xtask.cli.commands.install.command.install_tool", fake_install)
    runner = CliRunner()

    configured = runner.invoke(app, ["--no-emoji", "--root", str(workspace), "install"])
    overridden = runner.invoke(app, ["--no-emoji", "--root", str(workspace), "install", "--sha256", "b" * 64])

    assert configured.exit_code == 0, configured.output
    assert overridden.exit_code == 0, overridden.output
    assert [request.sha256 for request in calls] == ["a" * 64, "b" * 64]
