# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Configuration loading for the xtask dispatcher."""

from __future__ import annotations

from ..errors import ConfigError
from .loader import DefaultConfigSource, PyProjectConfigSource, TomlConfigSource, default_sources, load_config
from .models import AliasSettings, BuildSettings, InstallSettings, ProfileSettings, XtaskConfig

__all__ = [
    "AliasSettings",
    "BuildSettings",
    "ConfigError",
    "DefaultConfigSource",
    "InstallSettings",
    "ProfileSettings",
    "PyProjectConfigSource",
    "TomlConfigSource",
    "XtaskConfig",
    "default_sources",
    "load_config",
]
