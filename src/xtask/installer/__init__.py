# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tool installer for prebuilt release artifacts."""

from __future__ import annotations

from .fetch import FetchedArtifact, RetryPolicy, fetch_artifact
from .models import InstallOutcome, InstallReceipt, InstallRequest, InstallStatus, InstallTarget
from .service import directory_on_path, install_tool

__all__ = [
    "FetchedArtifact",
    "InstallOutcome",
    "InstallReceipt",
    "InstallRequest",
    "InstallStatus",
    "InstallTarget",
    "RetryPolicy",
    "directory_on_path",
    "fetch_artifact",
    "install_tool",
]
