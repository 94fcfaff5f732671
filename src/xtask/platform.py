# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Host platform introspection and target-triple naming."""

from __future__ import annotations

import platform
from dataclasses import dataclass
from enum import StrEnum
from typing import Final


class ArchiveFormat(StrEnum):
    """Container format of a published release artifact."""

    GZIP = "gz"
    ZIP = "zip"


class ExecutableFormat(StrEnum):
    """Binary format expected for an executable on a given platform."""

    ELF = "elf"
    MACH_O = "mach-o"
    PE = "pe"


ARCH_ALIASES: Final[dict[str, str]] = {
    "amd64": "x86_64",
    "x86_64": "x86_64",
    "x64": "x86_64",
    "arm64": "aarch64",
    "aarch64": "aarch64",
    "armv7l": "armv7",
    "armv7": "armv7",
}

SYSTEM_ALIASES: Final[dict[str, str]] = {
    "linux": "linux",
    "darwin": "darwin",
    "windows": "windows",
    "win32": "windows",
}

# (system, machine, libc) -> target triple; ``None`` libc matches any C library.
PLATFORM_TRIPLES: Final[dict[tuple[str, str, str | None], str]] = {
    ("linux", "x86_64", "musl"): "x86_64-unknown-linux-musl",
    ("linux", "x86_64", None): "x86_64-unknown-linux-gnu",
    ("linux", "aarch64", None): "aarch64-unknown-linux-gnu",
    ("linux", "armv7", None): "arm-unknown-linux-gnueabihf",
    ("darwin", "x86_64", None): "x86_64-apple-darwin",
    ("darwin", "aarch64", None): "aarch64-apple-darwin",
    ("windows", "x86_64", None): "x86_64-pc-windows-msvc",
    ("windows", "aarch64", None): "aarch64-pc-windows-msvc",
}

EXECUTABLE_FORMATS: Final[dict[str, ExecutableFormat]] = {
    "linux": ExecutableFormat.ELF,
    "darwin": ExecutableFormat.MACH_O,
    "windows": ExecutableFormat.PE,
}


@dataclass(frozen=True, slots=True)
class HostPlatform:
    """Normalised description of the machine running the dispatcher.

    Attributes:
        system: Lower-case operating system name (``linux``, ``darwin``, ``windows``).
        machine: Normalised CPU architecture (``x86_64``, ``aarch64``, ...).
        libc: C library family on Linux (``gnu`` or ``musl``), otherwise ``None``.
    """

    system: str
    machine: str
    libc: str | None = None

    @property
    def is_windows(self) -> bool:
        return self.system == "windows"

    @property
    def executable_suffix(self) -> str:
        """Return the filename suffix executables carry on this platform."""

        return ".exe" if self.is_windows else ""

    @property
    def archive_format(self) -> ArchiveFormat:
        """Return the container format releases use for this platform."""

        return ArchiveFormat.ZIP if self.is_windows else ArchiveFormat.GZIP

    @property
    def executable_format(self) -> ExecutableFormat | None:
        return EXECUTABLE_FORMATS.get(self.system)

    def describe(self) -> str:
        suffix = f" ({self.libc})" if self.libc else ""
        return f"{self.system}/{self.machine}{suffix}"


def normalize_architecture(machine: str) -> str:
    """Return the normalised architecture identifier derived from ``machine``.

    Args:
        machine: Raw architecture string reported by the platform.

    Returns:
        str: Normalised architecture identifier; unknown values are lower-cased.
    """

    normalized = machine.strip().lower()
    return ARCH_ALIASES.get(normalized, normalized)


def normalize_system(system: str) -> str:
    normalized = system.strip().lower()
    return SYSTEM_ALIASES.get(normalized, normalized)


def _detect_libc(system: str) -> str | None:
    if system != "linux":
        return None
    libc_name, _ = platform.libc_ver()
    # ``libc_ver`` only recognises glibc; an empty answer on Linux means musl.
    return "gnu" if libc_name == "glibc" else "musl"


def detect_host() -> HostPlatform:
    """Return the :class:`HostPlatform` describing the running interpreter."""

    system = normalize_system(platform.system())
    return HostPlatform(
        system=system,
        machine=normalize_architecture(platform.machine()),
        libc=_detect_libc(system),
    )


def platform_key(host: HostPlatform) -> str | None:
    """Return the target triple naming ``host``, or ``None`` when unknown.

    Args:
        host: Host description produced by :func:`detect_host`.

    Returns:
        str | None: Target triple such as ``x86_64-unknown-linux-gnu``.
    """

    exact = PLATFORM_TRIPLES.get((host.system, host.machine, host.libc))
    if exact is not None:
        return exact
    if host.libc == "musl":
        # glibc-linked artifacts do not run on musl hosts.
        return None
    return PLATFORM_TRIPLES.get((host.system, host.machine, None))


def host_triple() -> str | None:
    """Return the target triple of the running host when it is recognised."""

    return platform_key(detect_host())


__all__ = [
    "ARCH_ALIASES",
    "ArchiveFormat",
    "ExecutableFormat",
    "HostPlatform",
    "PLATFORM_TRIPLES",
    "detect_host",
    "host_triple",
    "normalize_architecture",
    "normalize_system",
    "platform_key",
]
