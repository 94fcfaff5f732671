# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Installer state machine: detect, resolve, fetch, verify, install."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import time
from collections.abc import Callable, Mapping
from pathlib import Path

from ..errors import InstallStage
from ..platform import HostPlatform, detect_host
from .fetch import ProgressCallback, RetryCallback, fetch_artifact
from .models import InstallOutcome, InstallReceipt, InstallRequest, InstallStatus, InstallTarget
from .place import install_executable, read_receipt, write_receipt
from .sources import CHANNELS, resolve_target
from .verify import sha256_file, verify_artifact

LOGGER = logging.getLogger(__name__)

StageCallback = Callable[[InstallStage, str], None]


def install_tool(
    request: InstallRequest,
    *,
    host: HostPlatform | None = None,
    env: Mapping[str, str] | None = None,
    on_stage: StageCallback | None = None,
    on_progress: ProgressCallback | None = None,
    on_retry: RetryCallback | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> InstallOutcome:
    """Install the requested tool release for the host platform.

    Stages run strictly in order and a failure in any stage aborts the run
    without touching the destination. Re-running with an already installed
    version is a no-op unless ``request.force`` is set.

    Args:
        request: What to install and where.
        host: Platform override; detected from the interpreter when omitted.
        env: Environment used for ``CARGO_HOME`` and the ``PATH`` check.
        on_stage: Called with ``(stage, resource)`` when each stage starts.
        on_progress: Download progress callback forwarded to the fetch stage.
        on_retry: Called before each fetch retry.
        sleep: Callable used for retry backoff.

    Returns:
        InstallOutcome: Final status, resolved target and receipt.

    Raises:
        UnsupportedPlatformError: If no artifact exists for the host.
        NetworkFailureError: If the download kept failing transiently.
        NotFoundError: If the version or artifact does not exist.
        CorruptArtifactError: If the artifact fails verification.
        PermissionDeniedError: If the destination cannot be written.
    """

    environment = env if env is not None else os.environ

    def _enter(stage: InstallStage, resource: str) -> None:
        LOGGER.debug("install stage=%s resource=%s", stage.value, resource)
        if on_stage is not None:
            on_stage(stage, resource)

    _enter(InstallStage.DETECT, request.tool)
    active_host = host or detect_host()

    _enter(InstallStage.RESOLVE, active_host.describe())
    target = resolve_target(request, active_host, env=environment)
    destination = target.destination_path
    previous = read_receipt(destination) if destination.exists() else None
    if not request.force and previous is not None and _is_current(previous, target):
        if target.version in CHANNELS:
            LOGGER.debug("%s channel already installed; pass force to refresh", target.version)
        return InstallOutcome(
            status=InstallStatus.UP_TO_DATE,
            target=target,
            receipt=previous,
            on_path=directory_on_path(destination.parent, environment),
        )

    staging_dir = Path(tempfile.mkdtemp(prefix=f"{request.tool}-install-"))
    try:
        _enter(InstallStage.FETCH, target.source_locator)
        artifact = fetch_artifact(
            target.source_locator,
            staging_dir / target.source_locator.rsplit("/", 1)[-1],
            policy=request.retry,
            timeout=request.timeout,
            sleep=sleep,
            on_progress=on_progress,
            on_retry=on_retry,
        )

        _enter(InstallStage.VERIFY, str(artifact.path))
        payload = verify_artifact(
            artifact,
            host=active_host,
            tool=request.tool,
            output=staging_dir / f"payload{active_host.executable_suffix}",
            expected_sha256=request.sha256,
        )
        digest = sha256_file(payload)

        _enter(InstallStage.INSTALL, str(destination))
        existed = destination.exists()
        install_executable(payload, destination)
    finally:
        shutil.rmtree(staging_dir, ignore_errors=True)

    receipt = InstallReceipt(
        tool=target.tool_name,
        version=target.version,
        platform_key=target.platform_key,
        source=target.source_locator,
        sha256=digest,
    )
    write_receipt(destination, receipt)
    return InstallOutcome(
        status=InstallStatus.UPDATED if existed else InstallStatus.INSTALLED,
        target=target,
        receipt=receipt,
        on_path=directory_on_path(destination.parent, environment),
    )


def directory_on_path(directory: Path, env: Mapping[str, str]) -> bool:
    """Return ``True`` when ``directory`` is listed in ``env['PATH']``."""

    wanted = _normalized(directory)
    for entry in env.get("PATH", "").split(os.pathsep):
        if entry and _normalized(Path(entry)) == wanted:
            return True
    return False


def _is_current(receipt: InstallReceipt, target: InstallTarget) -> bool:
    if not receipt.matches(target):
        return False
    if not target.destination_path.is_file():
        return False
    return sha256_file(target.destination_path) == receipt.sha256


def _normalized(path: Path) -> Path:
    return path.expanduser().resolve(strict=False)


__all__ = ["StageCallback", "directory_on_path", "install_tool"]
