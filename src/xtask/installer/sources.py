# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Release source resolution for published tool artifacts."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Final

from ..constants import CARGO_HOME_ENV, DEFAULT_VERSION, NIGHTLY_CHANNEL
from ..errors import InstallStage, NotFoundError, UnsupportedPlatformError
from ..platform import HostPlatform, platform_key
from .models import InstallRequest, InstallTarget

_VERSION_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")
CHANNELS: Final[frozenset[str]] = frozenset({DEFAULT_VERSION, NIGHTLY_CHANNEL})


def validate_version(version: str) -> str:
    """Return ``version`` stripped, or raise when it cannot name a release.

    Raises:
        NotFoundError: If ``version`` is empty or contains characters that can
            never appear in a release tag.
    """

    candidate = version.strip()
    if not _VERSION_PATTERN.match(candidate):
        raise NotFoundError(
            f"'{version}' is not a valid release tag",
            stage=InstallStage.RESOLVE,
            resource=version or "<empty>",
        )
    return candidate


def artifact_name(tool: str, triple: str, host: HostPlatform) -> str:
    """Return the published asset name, e.g. ``rust-analyzer-x86_64-unknown-linux-gnu.gz``."""

    return f"{tool}-{triple}.{host.archive_format.value}"


def artifact_url(releases_url: str, version: str, asset: str) -> str:
    """Return the download URL of ``asset`` for ``version``.

    ``latest`` uses the release listing's redirect; any other value is treated
    as a tag (``nightly`` included).
    """

    base = releases_url.rstrip("/")
    if version == DEFAULT_VERSION:
        return f"{base}/latest/download/{asset}"
    return f"{base}/download/{version}/{asset}"


def default_install_dir(env: Mapping[str, str] | None = None) -> Path:
    """Return ``$CARGO_HOME/bin``, falling back to ``~/.cargo/bin``."""

    environment = env if env is not None else os.environ
    cargo_home = environment.get(CARGO_HOME_ENV)
    if cargo_home:
        return Path(cargo_home).expanduser() / "bin"
    return Path.home() / ".cargo" / "bin"


def resolve_target(
    request: InstallRequest,
    host: HostPlatform,
    *,
    env: Mapping[str, str] | None = None,
) -> InstallTarget:
    """Resolve the artifact location and destination for ``host``.

    Args:
        request: Installer request.
        host: Detected host platform.
        env: Environment consulted for ``CARGO_HOME``.

    Returns:
        InstallTarget: Fully resolved target.

    Raises:
        UnsupportedPlatformError: If no artifact is published for ``host``.
        NotFoundError: If the requested version is malformed.
    """

    triple = platform_key(host)
    if triple is None:
        raise UnsupportedPlatformError(
            f"no {request.tool} build is published for this platform",
            stage=InstallStage.DETECT,
            resource=host.describe(),
        )
    version = validate_version(request.version)
    url = artifact_url(request.releases_url, version, artifact_name(request.tool, triple, host))
    if request.destination is not None:
        destination = request.destination.expanduser()
    else:
        destination = default_install_dir(env) / f"{request.tool}{host.executable_suffix}"
    return InstallTarget(
        tool_name=request.tool,
        version=version,
        platform_key=triple,
        source_locator=url,
        destination_path=destination,
    )


__all__ = [
    "CHANNELS",
    "artifact_name",
    "artifact_url",
    "default_install_dir",
    "resolve_target",
    "validate_version",
]
