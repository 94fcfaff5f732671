# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Install CLI command."""

from __future__ import annotations

import typer

from ....constants import INSTALL_COMMAND
from .command import install_command

__all__ = ["register"]


def register(app: typer.Typer) -> None:
    """Register the install command with ``app``."""

    app.command(name=INSTALL_COMMAND)(install_command)
