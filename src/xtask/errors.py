# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Error taxonomy shared by the dispatcher, configuration and installer."""

from __future__ import annotations

from collections.abc import Sequence
from enum import StrEnum

from .constants import (
    EXIT_EXECUTABLE_NOT_FOUND,
    EXIT_INSTALL_FAILURE,
    EXIT_RESOLUTION_FAILURE,
)


class XtaskError(RuntimeError):
    """Base error carrying the process exit status used by the CLI."""

    exit_code: int = 1

    def __init__(self, message: str, *, exit_code: int | None = None) -> None:
        """Initialise the error with a message and optional exit status.

        Args:
            message: Human-readable description shown to the user.
            exit_code: Explicit exit status overriding the class default.
        """

        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(XtaskError):
    """Raised when configuration input is invalid."""

    exit_code = EXIT_RESOLUTION_FAILURE


class DispatchError(XtaskError):
    """Raised when a command name cannot be turned into an invocation."""

    exit_code = EXIT_RESOLUTION_FAILURE


class UnknownAliasError(DispatchError):
    """Raised by the alias table when ``name`` has no entry."""

    def __init__(self, name: str) -> None:
        super().__init__(f"unknown alias '{name}'")
        self.name = name


class UnknownCommandError(DispatchError):
    """Raised when a name is neither an alias nor a built-in command."""

    def __init__(self, name: str) -> None:
        super().__init__(f"unknown command '{name}'")
        self.name = name


class ArgumentsNotAcceptedError(DispatchError):
    """Raised when trailing arguments are passed to an alias that forbids them."""

    def __init__(self, name: str, arguments: Sequence[str]) -> None:
        joined = " ".join(arguments)
        super().__init__(f"alias '{name}' does not accept arguments (got: {joined})")
        self.name = name
        self.arguments = tuple(arguments)


class ExecutableNotFoundError(XtaskError):
    """Raised when the resolved command's executable is missing from ``PATH``."""

    exit_code = EXIT_EXECUTABLE_NOT_FOUND

    def __init__(self, executable: str) -> None:
        super().__init__(f"executable '{executable}' was not found on PATH")
        self.executable = executable


class InstallStage(StrEnum):
    """Stages of the tool installer state machine."""

    DETECT = "detect"
    RESOLVE = "resolve"
    FETCH = "fetch"
    VERIFY = "verify"
    INSTALL = "install"


class InstallError(XtaskError):
    """Base class for installer failures tagged with the stage that raised them."""

    exit_code = EXIT_INSTALL_FAILURE
    kind: str = "InstallError"
    retryable: bool = False

    def __init__(self, detail: str, *, stage: InstallStage, resource: str) -> None:
        """Initialise the error with stage and resource metadata.

        Args:
            detail: Description of what went wrong.
            stage: Installer stage active when the failure occurred.
            resource: URL, path or platform identifier involved in the failure.
        """

        super().__init__(f"{self.kind} during {stage.value} ({resource}): {detail}")
        self.detail = detail
        self.stage = stage
        self.resource = resource


class UnsupportedPlatformError(InstallError):
    """No artifact is published for the host OS and architecture."""

    kind = "UnsupportedPlatform"


class NetworkFailureError(InstallError):
    """Transient transport failure; the only kind retried automatically."""

    kind = "NetworkFailure"
    retryable = True


class NotFoundError(InstallError):
    """The artifact source answered with a terminal client error."""

    kind = "NotFound"


class CorruptArtifactError(InstallError):
    """The downloaded artifact is truncated, malformed or fails its checksum."""

    kind = "CorruptArtifact"


class PermissionDeniedError(InstallError):
    """The destination path cannot be written."""

    kind = "PermissionDenied"


__all__ = [
    "ArgumentsNotAcceptedError",
    "ConfigError",
    "CorruptArtifactError",
    "DispatchError",
    "ExecutableNotFoundError",
    "InstallError",
    "InstallStage",
    "NetworkFailureError",
    "NotFoundError",
    "PermissionDeniedError",
    "UnknownAliasError",
    "UnknownCommandError",
    "UnsupportedPlatformError",
    "XtaskError",
]
