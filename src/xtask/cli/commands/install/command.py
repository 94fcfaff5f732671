# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Implementation of the ``xtask install`` command."""

from __future__ import annotations

from types import TracebackType

import typer
from rich.console import Console
from rich.progress import BarColumn, DownloadColumn, Progress, TaskID, TextColumn, TransferSpeedColumn

from ....constants import EXIT_INTERRUPTED
from ....errors import InstallStage, NetworkFailureError, XtaskError
from ....installer import InstallStatus, install_tool
from ....installer.sources import resolve_target
from ....platform import detect_host
from ...shared import CLILogger, get_state
from .models import (
    DEST_OPTION,
    FORCE_OPTION,
    RETRIES_OPTION,
    SHA256_OPTION,
    TIMEOUT_OPTION,
    VERSION_OPTION,
    build_install_request,
)


class DownloadProgress:
    """Rich progress bar shown while an artifact downloads on a terminal."""

    def __init__(self, console: Console, description: str) -> None:
        self._description = description
        self._task: TaskID | None = None
        self._progress: Progress | None = None
        if console.is_terminal:
            self._progress = Progress(
                TextColumn("{task.description}"),
                BarColumn(),
                DownloadColumn(),
                TransferSpeedColumn(),
                console=console,
                transient=True,
            )

    def __enter__(self) -> DownloadProgress:
        if self._progress is not None:
            self._progress.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        if self._progress is not None:
            self._progress.stop()

    def update(self, downloaded: int, total: int | None) -> None:
        if self._progress is None:
            return
        if self._task is None:
            self._task = self._progress.add_task(self._description, total=total)
        self._progress.update(self._task, completed=downloaded, total=total)


def install_command(
    ctx: typer.Context,
    version: VERSION_OPTION = None,
    force: FORCE_OPTION = False,
    dest: DEST_OPTION = None,
    sha256: SHA256_OPTION = None,
    retries: RETRIES_OPTION = None,
    timeout: TIMEOUT_OPTION = None,
) -> None:
    """Download rust-analyzer for this platform and install it atomically."""

    state = get_state(ctx)
    logger = state.logger
    try:
        request = build_install_request(
            state.config().install,
            version=version,
            force=force,
            dest=dest,
            sha256=sha256,
            retries=retries,
            timeout=timeout,
        )
        if state.dry_run:
            target = resolve_target(request, detect_host())
            logger.info(f"Would install {target.tool_name} {target.version} ({target.platform_key})")
            logger.info(f"  from {target.source_locator}")
            logger.info(f"  to   {target.destination_path}")
            raise typer.Exit(code=0)

        with DownloadProgress(logger.console(), f"Downloading {request.tool}") as progress:
            outcome = install_tool(
                request,
                on_stage=lambda stage, resource: _report_stage(logger, stage, resource),
                on_progress=progress.update,
                on_retry=lambda attempt, error, delay: _report_retry(
                    logger,
                    attempt,
                    error,
                    delay,
                    attempts=request.retry.attempts,
                ),
            )
    except XtaskError as exc:
        logger.fail(str(exc))
        raise typer.Exit(code=exc.exit_code) from exc
    except KeyboardInterrupt as exc:
        logger.warn("Installation interrupted; destination left unchanged")
        raise typer.Exit(code=EXIT_INTERRUPTED) from exc

    target = outcome.target
    if outcome.status is InstallStatus.UP_TO_DATE:
        logger.ok(f"{target.tool_name} {target.version} is already installed at {target.destination_path}")
    else:
        verb = "Updated" if outcome.status is InstallStatus.UPDATED else "Installed"
        logger.ok(f"{verb} {target.tool_name} {target.version} at {target.destination_path}")
    if not outcome.on_path:
        logger.warn(f"{target.destination_path.parent} is not on PATH; add it to run {target.tool_name} directly")
    raise typer.Exit(code=0)


def _report_stage(logger: CLILogger, stage: InstallStage, resource: str) -> None:
    if stage is InstallStage.FETCH:
        logger.info(f"Fetching {resource}")


def _report_retry(
    logger: CLILogger,
    attempt: int,
    error: NetworkFailureError,
    delay: float,
    *,
    attempts: int,
) -> None:
    logger.warn(f"{error.detail}; retrying in {delay:.1f}s (attempt {attempt + 1} of {attempts})")


__all__ = ["DownloadProgress", "install_command"]
