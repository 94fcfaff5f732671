# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Data structures for the install CLI command."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from ....config import InstallSettings
from ....installer import InstallRequest, RetryPolicy

VERSION_OPTION = Annotated[
    str | None,
    typer.Option("--version", "-V", help="Release to install: latest, nightly or a tag."),
]
FORCE_OPTION = Annotated[
    bool,
    typer.Option("--force", "-f", help="Reinstall even when the version is already present."),
]
DEST_OPTION = Annotated[
    Path | None,
    typer.Option("--dest", help="Install to this path instead of the cargo bin directory."),
]
SHA256_OPTION = Annotated[
    str | None,
    typer.Option("--sha256", help="Expected SHA-256 of the downloaded artifact."),
]
RETRIES_OPTION = Annotated[
    int | None,
    typer.Option("--retries", min=1, max=10, help="Download attempts before giving up."),
]
TIMEOUT_OPTION = Annotated[
    float | None,
    typer.Option("--timeout", min=0.1, help="Per-request timeout in seconds."),
]


def build_install_request(
    settings: InstallSettings,
    *,
    version: str | None,
    force: bool,
    dest: Path | None,
    sha256: str | None,
    retries: int | None,
    timeout: float | None,
) -> InstallRequest:
    """Combine configured install defaults with command-line overrides.

    Args:
        settings: ``[install]`` configuration.
        version: ``--version`` override.
        force: ``--force`` flag.
        dest: ``--dest`` override.
        sha256: ``--sha256`` override.
        retries: ``--retries`` override.
        timeout: ``--timeout`` override.

    Returns:
        InstallRequest: Request passed to the installer.
    """

    return InstallRequest(
        tool=settings.tool,
        version=version if version is not None else settings.version,
        force=force,
        destination=dest.expanduser() if dest is not None else settings.destination,
        sha256=sha256 if sha256 is not None else settings.sha256,
        releases_url=settings.releases_url,
        retry=RetryPolicy(
            attempts=retries if retries is not None else settings.retries,
            backoff=settings.backoff,
            max_backoff=settings.max_backoff,
        ),
        timeout=timeout if timeout is not None else settings.timeout,
    )


__all__ = [
    "DEST_OPTION",
    "FORCE_OPTION",
    "RETRIES_OPTION",
    "SHA256_OPTION",
    "TIMEOUT_OPTION",
    "VERSION_OPTION",
    "build_install_request",
]
