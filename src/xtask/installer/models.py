# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Data structures exchanged between installer stages."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from ..constants import DEFAULT_RELEASES_URL, DEFAULT_TOOL_NAME, DEFAULT_VERSION
from .fetch import RetryPolicy


class InstallStatus(StrEnum):
    """Terminal state reported by a successful installer run."""

    INSTALLED = "installed"
    UPDATED = "updated"
    UP_TO_DATE = "up-to-date"


@dataclass(frozen=True, slots=True)
class InstallRequest:
    """Caller-supplied parameters for one installer run.

    Attributes:
        tool: Release asset prefix and installed executable name.
        version: ``latest``, ``nightly`` or an explicit release tag.
        force: Reinstall even when the recorded version already matches.
        destination: Explicit executable path; defaults to the cargo bin directory.
        sha256: Optional expected digest of the downloaded artifact.
        releases_url: Base URL of the release listing.
        retry: Retry policy applied to transient network failures.
        timeout: Per-request timeout in seconds.
    """

    tool: str = DEFAULT_TOOL_NAME
    version: str = DEFAULT_VERSION
    force: bool = False
    destination: Path | None = None
    sha256: str | None = None
    releases_url: str = DEFAULT_RELEASES_URL
    retry: RetryPolicy = RetryPolicy()
    timeout: float = 60.0


@dataclass(frozen=True, slots=True)
class InstallTarget:
    """Resolved description of what will be fetched and where it lands.

    Attributes:
        tool_name: Executable name without platform suffix.
        version: Requested version or channel.
        platform_key: Target triple of the artifact.
        source_locator: URL of the release artifact.
        destination_path: Final path of the installed executable.
    """

    tool_name: str
    version: str
    platform_key: str
    source_locator: str
    destination_path: Path


class InstallReceipt(BaseModel):
    """Record written next to the executable after a successful install."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    tool: str
    version: str
    platform_key: str
    source: str
    sha256: str
    installed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def matches(self, target: InstallTarget) -> bool:
        """Return ``True`` when this receipt describes ``target``."""

        return (
            self.tool == target.tool_name
            and self.version == target.version
            and self.platform_key == target.platform_key
        )


@dataclass(frozen=True, slots=True)
class InstallOutcome:
    """Result of a completed installer run."""

    status: InstallStatus
    target: InstallTarget
    receipt: InstallReceipt
    on_path: bool = True

    @property
    def changed(self) -> bool:
        return self.status is not InstallStatus.UP_TO_DATE


__all__ = [
    "InstallOutcome",
    "InstallReceipt",
    "InstallRequest",
    "InstallStatus",
    "InstallTarget",
]
