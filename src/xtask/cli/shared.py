# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Shared CLI state and logging adapters."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import typer
from rich.console import Console

from ..config import XtaskConfig, load_config
from ..console import detect_tty, get_console_manager
from ..logging import fail as core_fail
from ..logging import info as core_info
from ..logging import ok as core_ok
from ..logging import warn as core_warn


@dataclass(slots=True)
class CLILogger:
    """Adapter around project logging helpers respecting CLI emoji settings."""

    use_emoji: bool
    use_color: bool | None = None

    def fail(self, message: str) -> None:
        core_fail(message, use_emoji=self.use_emoji, use_color=self.use_color)

    def warn(self, message: str) -> None:
        core_warn(message, use_emoji=self.use_emoji, use_color=self.use_color)

    def ok(self, message: str) -> None:
        core_ok(message, use_emoji=self.use_emoji, use_color=self.use_color)

    def info(self, message: str) -> None:
        core_info(message, use_emoji=self.use_emoji, use_color=self.use_color)

    def console(self) -> Console:
        """Return the stdout console matching this logger's preferences."""

        color = detect_tty() if self.use_color is None else self.use_color
        return get_console_manager().get(color=color, emoji=self.use_emoji)


@dataclass(slots=True)
class CLIState:
    """Global options captured by the root callback and shared with subcommands.

    Attributes:
        root: Workspace root used for configuration discovery and as child cwd.
        config_path: Explicit configuration file, if supplied.
        dry_run: Print resolved invocations instead of running them.
        verbose: Debug logging is enabled.
        logger: Console logger honouring emoji preferences.
    """

    root: Path
    config_path: Path | None = None
    dry_run: bool = False
    verbose: bool = False
    logger: CLILogger = field(default_factory=lambda: CLILogger(use_emoji=True))
    _config: XtaskConfig | None = None

    def config(self) -> XtaskConfig:
        """Load (once) and return the merged configuration.

        Raises:
            ConfigError: If a configuration source is invalid.
        """

        if self._config is None:
            self._config = load_config(self.root, config_path=self.config_path)
        return self._config


def build_cli_logger(*, emoji: bool, no_color: bool = False) -> CLILogger:
    """Return a :class:`CLILogger` configured for the provided preferences."""

    return CLILogger(use_emoji=emoji, use_color=False if no_color else None)


def get_state(ctx: typer.Context) -> CLIState:
    """Return the :class:`CLIState` installed by the root callback."""

    state = ctx.find_object(CLIState)
    if state is None:
        state = CLIState(root=Path.cwd())
        ctx.obj = state
    return state


__all__ = ["CLILogger", "CLIState", "build_cli_logger", "get_state"]
