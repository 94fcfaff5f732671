# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Aliases CLI command."""

from __future__ import annotations

import typer

from ....constants import ALIASES_COMMAND
from .command import aliases_command

__all__ = ["register"]


def register(app: typer.Typer) -> None:
    """Register the aliases listing command with ``app``."""

    app.command(name=ALIASES_COMMAND)(aliases_command)
