# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Shared constants for the xtask dispatcher and installer."""

from __future__ import annotations

from typing import Final

PROG_NAME: Final[str] = "xtask"

# Exit statuses for failures that never reach a child process.
EXIT_INSTALL_FAILURE: Final[int] = 1
EXIT_RESOLUTION_FAILURE: Final[int] = 2
EXIT_EXECUTABLE_NOT_FOUND: Final[int] = 127
EXIT_INTERRUPTED: Final[int] = 130
SIGNAL_EXIT_BASE: Final[int] = 128

ARGS_PLACEHOLDER: Final[str] = "{args}"
INSTALL_COMMAND: Final[str] = "install"
ALIASES_COMMAND: Final[str] = "aliases"
BUILTIN_COMMANDS: Final[frozenset[str]] = frozenset({INSTALL_COMMAND, ALIASES_COMMAND})

BUILD_TARGET_ENV: Final[str] = "CARGO_BUILD_TARGET"
CARGO_HOME_ENV: Final[str] = "CARGO_HOME"
CONFIG_PATH_ENV: Final[str] = "XTASK_CONFIG"
TARGET_FLAG: Final[str] = "--target"
ARGS_SEPARATOR: Final[str] = "--"

CONFIG_FILENAME: Final[str] = "xtask.toml"
PYPROJECT_FILENAME: Final[str] = "pyproject.toml"

DEFAULT_TOOL_NAME: Final[str] = "rust-analyzer"
DEFAULT_VERSION: Final[str] = "latest"
NIGHTLY_CHANNEL: Final[str] = "nightly"
DEFAULT_RELEASES_URL: Final[str] = "https://github.com/rust-lang/rust-analyzer/releases"

__all__ = [
    "ALIASES_COMMAND",
    "ARGS_PLACEHOLDER",
    "ARGS_SEPARATOR",
    "BUILD_TARGET_ENV",
    "BUILTIN_COMMANDS",
    "CARGO_HOME_ENV",
    "CONFIG_FILENAME",
    "CONFIG_PATH_ENV",
    "DEFAULT_RELEASES_URL",
    "DEFAULT_TOOL_NAME",
    "DEFAULT_VERSION",
    "EXIT_EXECUTABLE_NOT_FOUND",
    "EXIT_INSTALL_FAILURE",
    "EXIT_INTERRUPTED",
    "EXIT_RESOLUTION_FAILURE",
    "INSTALL_COMMAND",
    "NIGHTLY_CHANNEL",
    "PROG_NAME",
    "PYPROJECT_FILENAME",
    "SIGNAL_EXIT_BASE",
    "TARGET_FLAG",
]
