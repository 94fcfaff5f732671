# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Per-target toolchain profiles applied to child-process environments."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Final

from .constants import ARGS_SEPARATOR, BUILD_TARGET_ENV, TARGET_FLAG

WINDOWS_MSVC_TRIPLE: Final[str] = "x86_64-pc-windows-msvc"
FAST_LINKER: Final[str] = "rust-lld"


def cargo_target_variable(triple: str, key: str) -> str:
    """Return the cargo environment variable configuring ``key`` for ``triple``.

    Example: ``("x86_64-pc-windows-msvc", "linker")`` becomes
    ``CARGO_TARGET_X86_64_PC_WINDOWS_MSVC_LINKER``.
    """

    normalized = triple.upper().replace("-", "_").replace(".", "_")
    return f"CARGO_TARGET_{normalized}_{key.upper()}"


@dataclass(frozen=True, slots=True)
class ToolchainProfile:
    """Environment overrides applied when building for ``target_triple``."""

    target_triple: str
    environment_overrides: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        frozen = MappingProxyType({str(k): str(v) for k, v in self.environment_overrides.items()})
        object.__setattr__(self, "environment_overrides", frozen)


class ProfileResolver:
    """Look up :class:`ToolchainProfile` overrides by target triple."""

    def __init__(self, profiles: Sequence[ToolchainProfile] = ()) -> None:
        """Index ``profiles`` by triple.

        Raises:
            ValueError: If two profiles name the same triple.
        """

        indexed: dict[str, ToolchainProfile] = {}
        for profile in profiles:
            if profile.target_triple in indexed:
                raise ValueError(f"duplicate toolchain profile for '{profile.target_triple}'")
            indexed[profile.target_triple] = profile
        self._profiles: Mapping[str, ToolchainProfile] = MappingProxyType(indexed)

    @property
    def profiles(self) -> tuple[ToolchainProfile, ...]:
        return tuple(self._profiles.values())

    def overrides_for(self, target_triple: str | None) -> Mapping[str, str]:
        """Return the overrides registered for ``target_triple``.

        Unknown or missing triples are normal and yield an empty mapping.
        """

        if target_triple is None:
            return {}
        profile = self._profiles.get(target_triple)
        if profile is None:
            return {}
        return dict(profile.environment_overrides)

    def apply(self, env: Mapping[str, str], target_triple: str | None) -> dict[str, str]:
        """Return a copy of ``env`` with the overrides for ``target_triple`` layered on top.

        ``env`` itself is never modified and unrelated variables are preserved.
        """

        merged = dict(env)
        merged.update(self.overrides_for(target_triple))
        return merged


def target_from_args(args: Sequence[str]) -> str | None:
    """Return the value of a ``--target`` flag found before any ``--`` separator."""

    iterator = iter(args)
    for token in iterator:
        if token == ARGS_SEPARATOR:
            return None
        if token == TARGET_FLAG:
            return next(iterator, None)
        if token.startswith(f"{TARGET_FLAG}="):
            return token.partition("=")[2] or None
    return None


def active_target(
    args: Sequence[str],
    env: Mapping[str, str],
    *,
    configured: str | None = None,
    host: str | None = None,
) -> str | None:
    """Return the build target governing profile selection.

    Precedence: ``--target`` in the forwarded arguments, then
    ``CARGO_BUILD_TARGET``, then the configured default, then the host triple.
    """

    return target_from_args(args) or env.get(BUILD_TARGET_ENV) or configured or host


DEFAULT_PROFILES: Final[tuple[ToolchainProfile, ...]] = (
    ToolchainProfile(
        WINDOWS_MSVC_TRIPLE,
        {cargo_target_variable(WINDOWS_MSVC_TRIPLE, "linker"): FAST_LINKER},
    ),
)


def default_profile_resolver() -> ProfileResolver:
    """Return a resolver holding :data:`DEFAULT_PROFILES`."""

    return ProfileResolver(DEFAULT_PROFILES)


__all__ = [
    "DEFAULT_PROFILES",
    "FAST_LINKER",
    "ProfileResolver",
    "ToolchainProfile",
    "WINDOWS_MSVC_TRIPLE",
    "active_target",
    "cargo_target_variable",
    "default_profile_resolver",
    "target_from_args",
]
