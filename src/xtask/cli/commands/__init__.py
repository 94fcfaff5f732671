# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""CLI command registry."""

from __future__ import annotations

import typer

from . import aliases, install

__all__ = ["register_commands"]


def register_commands(app: typer.Typer) -> None:
    """Register the built-in CLI commands on ``app``.

    Args:
        app: Typer application receiving command registrations.
    """

    install.register(app)
    aliases.register(app)
