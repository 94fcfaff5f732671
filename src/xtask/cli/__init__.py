# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Command-line interface for the xtask dispatcher."""

from __future__ import annotations

from .app import app, main, run_cli

__all__ = ["app", "main", "run_cli"]
