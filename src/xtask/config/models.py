# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Configuration models validated from merged TOML fragments."""

from __future__ import annotations

import shlex
from collections.abc import Mapping
from pathlib import Path
from typing import Annotated, Final

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..aliases import AliasEntry, AliasTable
from ..constants import (
    BUILTIN_COMMANDS,
    DEFAULT_RELEASES_URL,
    DEFAULT_TOOL_NAME,
    DEFAULT_VERSION,
)
from ..errors import ConfigError
from ..profiles import ProfileResolver, ToolchainProfile, cargo_target_variable

LINKER_KEY: Final[str] = "linker"
RUSTFLAGS_KEY: Final[str] = "rustflags"
SHA256_PATTERN: Final[str] = r"^[0-9A-Fa-f]{64}$"


class AliasSettings(BaseModel):
    """Table form of an alias definition."""

    model_config = ConfigDict(extra="forbid")

    command: list[str] = Field(min_length=1)
    trailing_args: bool = True


AliasValue = str | list[str] | AliasSettings


class ProfileSettings(BaseModel):
    """Per-target overrides declared under ``[target.<triple>]``."""

    model_config = ConfigDict(extra="forbid")

    linker: str | None = None
    rustflags: list[str] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)

    def to_profile(self, triple: str) -> ToolchainProfile:
        """Return the :class:`ToolchainProfile` described by these settings.

        Args:
            triple: Target triple the settings were declared for.

        Returns:
            ToolchainProfile: Profile whose overrides combine ``linker``,
            ``rustflags`` and the free-form ``env`` table.
        """

        overrides: dict[str, str] = {}
        if self.linker:
            overrides[cargo_target_variable(triple, LINKER_KEY)] = self.linker
        if self.rustflags:
            overrides[cargo_target_variable(triple, RUSTFLAGS_KEY)] = " ".join(self.rustflags)
        overrides.update(self.env)
        return ToolchainProfile(triple, overrides)


class BuildSettings(BaseModel):
    """Ambient build configuration."""

    model_config = ConfigDict(extra="forbid")

    target: str | None = None


class InstallSettings(BaseModel):
    """Defaults for the ``install`` command."""

    model_config = ConfigDict(extra="forbid")

    tool: str = DEFAULT_TOOL_NAME
    version: str = DEFAULT_VERSION
    destination: Path | None = None
    releases_url: str = DEFAULT_RELEASES_URL
    retries: int = Field(default=4, ge=1, le=10)
    backoff: float = Field(default=0.5, ge=0)
    max_backoff: float = Field(default=8.0, ge=0)
    timeout: float = Field(default=60.0, gt=0)
    sha256: Annotated[str, Field(pattern=SHA256_PATTERN)] | None = None

    @field_validator("destination")
    @classmethod
    def _expand_destination(cls, value: Path | None) -> Path | None:
        return value.expanduser() if value is not None else None

    @field_validator("releases_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("sha256")
    @classmethod
    def _lowercase_digest(cls, value: str | None) -> str | None:
        return value.lower() if value is not None else None


class XtaskConfig(BaseModel):
    """Fully merged configuration for one dispatcher invocation."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    build: BuildSettings = Field(default_factory=BuildSettings)
    alias: dict[str, AliasValue] = Field(default_factory=dict)
    target: dict[str, ProfileSettings] = Field(default_factory=dict)
    install: InstallSettings = Field(default_factory=InstallSettings)

    def alias_table(self) -> AliasTable:
        """Return the read-only :class:`AliasTable` described by ``[alias]``.

        Raises:
            ConfigError: If an alias shadows a built-in command, references an
                unknown alias, forms a reference cycle or has an invalid template.
        """

        return AliasTable(_AliasFlattener(self.alias).flatten())

    def profile_resolver(self) -> ProfileResolver:
        """Return the :class:`ProfileResolver` described by ``[target.*]``."""

        return ProfileResolver(
            [settings.to_profile(triple) for triple, settings in sorted(self.target.items())],
        )


class _AliasFlattener:
    """Expand alias references into standalone :class:`AliasEntry` objects."""

    def __init__(self, raw: Mapping[str, AliasValue]) -> None:
        self._raw = raw
        self._resolved: dict[str, AliasEntry] = {}

    def flatten(self) -> list[AliasEntry]:
        for name in self._raw:
            if name in BUILTIN_COMMANDS:
                raise ConfigError(f"alias '{name}' shadows a built-in command")
            self._resolve(name, ())
        return [self._resolved[name] for name in self._raw]

    def _resolve(self, name: str, stack: tuple[str, ...]) -> AliasEntry:
        if name in self._resolved:
            return self._resolved[name]
        if name in stack:
            chain = " -> ".join((*stack, name))
            raise ConfigError(f"alias reference cycle: {chain}")

        value = self._raw[name]
        if isinstance(value, AliasSettings):
            tokens, accepts = list(value.command), value.trailing_args
        elif isinstance(value, list):
            tokens, accepts = list(value), True
        else:
            try:
                tokens, accepts = shlex.split(value), True
            except ValueError as exc:
                raise ConfigError(f"alias '{name}' could not be parsed: {exc}") from exc
            if len(tokens) == 1 and tokens[0] in self._raw:
                target = self._resolve(tokens[0], (*stack, name))
                tokens, accepts = list(target.template), target.accepts_trailing_args

        try:
            entry = AliasEntry(name, tuple(tokens), accepts)
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc
        self._resolved[name] = entry
        return entry


__all__ = [
    "AliasSettings",
    "AliasValue",
    "BuildSettings",
    "InstallSettings",
    "ProfileSettings",
    "XtaskConfig",
]
