# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Configuration sources (defaults, pyproject, xtask.toml) and the merge pipeline."""

from __future__ import annotations

import logging
import os
import re
import tomllib
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Final, Protocol

from pydantic import ValidationError

from ..aliases import DEFAULT_ALIASES
from ..constants import CONFIG_FILENAME, CONFIG_PATH_ENV, PYPROJECT_FILENAME
from ..errors import ConfigError
from ..profiles import FAST_LINKER, WINDOWS_MSVC_TRIPLE
from .models import XtaskConfig

LOGGER = logging.getLogger(__name__)

PYPROJECT_TOOL_KEY: Final[str] = "tool"
PYPROJECT_SECTION_KEY: Final[str] = "xtask"
_ENV_VAR_PATTERN: Final[re.Pattern[str]] = re.compile(r"\$(\w+)|\$\{([^}]+)\}")


class ConfigSource(Protocol):
    """Provide a configuration fragment and a human-readable description."""

    name: str

    def load(self) -> Mapping[str, Any]:
        """Return the fragment contributed by this source."""
        ...

    def describe(self) -> str:
        """Return a description used in diagnostics."""
        ...


class DefaultConfigSource:
    """Return the built-in alias table and toolchain profiles as a fragment."""

    name = "defaults"

    def load(self) -> Mapping[str, Any]:
        aliases = {
            entry.name: {"command": list(entry.template), "trailing_args": entry.accepts_trailing_args}
            for entry in DEFAULT_ALIASES
        }
        return {"alias": aliases, "target": {WINDOWS_MSVC_TRIPLE: {"linker": FAST_LINKER}}}

    def describe(self) -> str:
        return "Built-in defaults"


class TomlConfigSource:
    """Load configuration data from a TOML document."""

    def __init__(self, path: Path, *, name: str | None = None, env: Mapping[str, str] | None = None) -> None:
        self._path = path
        self.name = name or str(path)
        self._env = env if env is not None else os.environ

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Mapping[str, Any]:
        if not self._path.is_file():
            return {}
        try:
            with self._path.open("rb") as handle:
                data = tomllib.load(handle)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"{self._path}: invalid TOML: {exc}") from exc
        except OSError as exc:
            raise ConfigError(f"{self._path}: unable to read configuration: {exc}") from exc
        return _expand_env(self._select(data), self._env)

    def _select(self, data: Mapping[str, Any]) -> Mapping[str, Any]:
        return data

    def describe(self) -> str:
        return f"TOML configuration at {self.name}"


class PyProjectConfigSource(TomlConfigSource):
    """Read configuration from ``[tool.xtask]`` within ``pyproject.toml``."""

    def _select(self, data: Mapping[str, Any]) -> Mapping[str, Any]:
        tool_section = data.get(PYPROJECT_TOOL_KEY)
        if not isinstance(tool_section, Mapping):
            return {}
        section = tool_section.get(PYPROJECT_SECTION_KEY)
        if not isinstance(section, Mapping):
            return {}
        return section

    def describe(self) -> str:
        return f"pyproject.toml ({self.name})"


def default_sources(
    root: Path,
    *,
    config_path: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> list[ConfigSource]:
    """Return the configuration sources for ``root`` in merge order.

    Args:
        root: Workspace root searched for ``pyproject.toml`` and ``xtask.toml``.
        config_path: Explicit configuration file replacing ``xtask.toml``.
        env: Environment used for ``XTASK_CONFIG`` lookup and ``$VAR`` expansion.

    Returns:
        list[ConfigSource]: Sources ordered from lowest to highest precedence.

    Raises:
        ConfigError: If an explicitly requested configuration file is missing.
    """

    environment = env if env is not None else os.environ
    explicit = config_path
    if explicit is None and environment.get(CONFIG_PATH_ENV):
        explicit = Path(environment[CONFIG_PATH_ENV])
    if explicit is not None:
        explicit = explicit.expanduser()
        if not explicit.is_absolute():
            explicit = root / explicit
        if not explicit.is_file():
            raise ConfigError(f"configuration file not found: {explicit}")

    return [
        DefaultConfigSource(),
        PyProjectConfigSource(root / PYPROJECT_FILENAME, env=environment),
        TomlConfigSource(explicit or (root / CONFIG_FILENAME), env=environment),
    ]


def load_config(
    root: Path,
    *,
    config_path: Path | None = None,
    env: Mapping[str, str] | None = None,
    sources: Sequence[ConfigSource] | None = None,
) -> XtaskConfig:
    """Merge every configuration source and validate the result.

    Args:
        root: Workspace root used to locate configuration files.
        config_path: Optional explicit configuration file.
        env: Environment mapping; defaults to :data:`os.environ`.
        sources: Explicit sources overriding :func:`default_sources`.

    Returns:
        XtaskConfig: Validated configuration.

    Raises:
        ConfigError: When a source cannot be parsed or validation fails.
    """

    active_sources = sources if sources is not None else default_sources(root, config_path=config_path, env=env)
    merged: dict[str, Any] = {}
    for source in active_sources:
        fragment = source.load()
        if fragment:
            LOGGER.debug("merging configuration from %s", source.describe())
            merged = _deep_merge(merged, fragment)
    try:
        return XtaskConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"invalid configuration: {exc}") from exc


def _deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], Mapping) and isinstance(value, Mapping):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _expand_env(data: Mapping[str, Any], env: Mapping[str, str]) -> dict[str, Any]:
    return {key: _expand_env_value(value, env) for key, value in data.items()}


def _expand_env_value(value: Any, env: Mapping[str, str]) -> Any:
    if isinstance(value, str):
        return _expand_env_string(value, env)
    if isinstance(value, Mapping):
        return {k: _expand_env_value(v, env) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand_env_value(v, env) for v in value]
    return value


def _expand_env_string(value: str, env: Mapping[str, str]) -> str:
    def _replace(match: re.Match[str]) -> str:
        key = match.group(1) or match.group(2)
        if key is None:
            return match.group(0)
        return env.get(key, match.group(0))

    return _ENV_VAR_PATTERN.sub(_replace, value)


__all__ = [
    "ConfigSource",
    "DefaultConfigSource",
    "PyProjectConfigSource",
    "TomlConfigSource",
    "default_sources",
    "load_config",
]
