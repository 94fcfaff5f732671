# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for configuration discovery, merging and alias flattening."""

from __future__ import annotations

from pathlib import Path

import pytest

from xtask.config import ConfigError, load_config
from xtask.config.loader import DefaultConfigSource, TomlConfigSource

MSVC_LINKER_VAR = "CARGO_TARGET_X86_64_PC_WINDOWS_MSVC_LINKER"


def _write(path: Path, content: str) -> Path:
    path.write_text(content, encoding="utf-8")
    return path


def test_defaults_without_configuration_files(workspace: Path) -> None:
    config = load_config(workspace, env={})

    table = config.alias_table()
    assert sorted(table) == ["install-ra", "lint", "qt", "tq", "xtask"]
    assert not table["lint"].accepts_trailing_args
    assert config.profile_resolver().overrides_for("x86_64-pc-windows-msvc") == {MSVC_LINKER_VAR: "rust-lld"}
    assert config.install.tool == "rust-analyzer"
    assert config.install.version == "latest"


def test_xtask_toml_adds_aliases_in_every_form(workspace: Path) -> None:
    _write(
        workspace / "xtask.toml",
        """
[alias]
b = "cargo build {args} --release"
docs = ["cargo", "doc", "--no-deps"]
fmt = { command = ["cargo", "fmt", "--all"], trailing_args = false }
""",
    )

    table = load_config(workspace, env={}).alias_table()

    assert table["b"].build_argv(["-p", "core"]) == ["cargo", "build", "-p", "core", "--release"]
    assert table["docs"].build_argv(["--open"]) == ["cargo", "doc", "--no-deps", "--open"]
    assert not table["fmt"].accepts_trailing_args
    assert "tq" in table


def test_single_token_alias_references_are_flattened(workspace: Path) -> None:
    _write(
        workspace / "xtask.toml",
        """
[alias]
t = "tq"
tt = "t"
""",
    )

    table = load_config(workspace, env={}).alias_table()

    assert table["tt"].template == table["tq"].template
    assert table["tt"].build_argv(["x"]) == ["cargo", "test", "x", "--", "-q"]


def test_alias_reference_cycles_are_rejected(workspace: Path) -> None:
    _write(workspace / "xtask.toml", '[alias]\na = "b"\nb = "a"\n')

    config = load_config(workspace, env={})
    with pytest.raises(ConfigError, match="cycle"):
        config.alias_table()


def test_aliases_may_not_shadow_builtins(workspace: Path) -> None:
    _write(workspace / "xtask.toml", '[alias]\ninstall = "cargo install"\n')

    with pytest.raises(ConfigError, match="shadows a built-in") as excinfo:
        load_config(workspace, env={}).alias_table()
    assert excinfo.value.exit_code == 2


def test_pyproject_section_is_merged_below_xtask_toml(workspace: Path) -> None:
    _write(
        workspace / "pyproject.toml",
        """
[project]
name = "demo"

[tool.xtask.alias]
b = "cargo build"
c = "cargo check"

[tool.xtask.build]
target = "aarch64-apple-darwin"
""",
    )
    _write(workspace / "xtask.toml", '[alias]\nb = "cargo build --release"\n')

    config = load_config(workspace, env={})

    assert config.alias_table()["b"].template == ("cargo", "build", "--release")
    assert config.alias_table()["c"].template == ("cargo", "check")
    assert config.build.target == "aarch64-apple-darwin"


def test_target_tables_extend_profiles_with_env_expansion(workspace: Path) -> None:
    _write(
        workspace / "xtask.toml",
        """
[target.x86_64-unknown-linux-gnu]
linker = "clang"
rustflags = ["-C", "link-arg=-fuse-ld=mold"]
env = { CC = "$TOOLS/cc" }
""",
    )

    resolver = load_config(workspace, env={"TOOLS": "/opt/tools"}).profile_resolver()

    assert resolver.overrides_for("x86_64-unknown-linux-gnu") == {
        "CARGO_TARGET_X86_64_UNKNOWN_LINUX_GNU_LINKER": "clang",
        "CARGO_TARGET_X86_64_UNKNOWN_LINUX_GNU_RUSTFLAGS": "-C link-arg=-fuse-ld=mold",
        "CC": "/opt/tools/cc",
    }
    assert resolver.overrides_for("x86_64-pc-windows-msvc") == {MSVC_LINKER_VAR: "rust-lld"}


def test_explicit_config_path_and_environment_variable(workspace: Path, tmp_path: Path) -> None:
    custom = _write(tmp_path / "custom.toml", '[install]\nversion = "nightly"\n')

    assert load_config(workspace, config_path=custom, env={}).install.version == "nightly"
    assert load_config(workspace, env={"XTASK_CONFIG": str(custom)}).install.version == "nightly"


def test_relative_config_path_resolves_against_root(workspace: Path) -> None:
    _write(workspace / "ci.toml", '[install]\nretries = 2\n')

    assert load_config(workspace, config_path=Path("ci.toml"), env={}).install.retries == 2


def test_missing_explicit_config_is_an_error(workspace: Path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        load_config(workspace, config_path=Path("missing.toml"), env={})


def test_invalid_toml_is_reported(workspace: Path) -> None:
    _write(workspace / "xtask.toml", "[alias\n")

    with pytest.raises(ConfigError, match="invalid TOML"):
        load_config(workspace, env={})


def test_unknown_keys_fail_validation(workspace: Path) -> None:
    _write(workspace / "xtask.toml", "[install]\nmirror = true\n")

    with pytest.raises(ConfigError, match="invalid configuration"):
        load_config(workspace, env={})


def test_install_settings_normalisation(workspace: Path) -> None:
    _write(
        workspace / "xtask.toml",
        """
[install]
releases_url = "https://mirror.example/releases/"
destination = "~/bin/rust-analyzer"
""",
    )

    settings = load_config(workspace, env={}).install

    assert settings.releases_url == "https://mirror.example/releases"
    assert settings.destination == Path("~/bin/rust-analyzer").expanduser()


def test_explicit_sources_replace_discovery(workspace: Path) -> None:
    extra = _write(workspace / "other.toml", '[alias]\nz = "echo z"\n')

    config = load_config(workspace, sources=[DefaultConfigSource(), TomlConfigSource(extra, env={})])

    assert config.alias_table()["z"].command == "echo"


def test_install_checksum_from_pyproject_is_normalised(workspace: Path) -> None:
    _write(workspace / "pyproject.toml", f'[tool.xtask.install]\nsha256 = "{"AB" * 32}"\n')

    assert load_config(workspace, env={}).install.sha256 == "ab" * 32


def test_malformed_install_checksum_fails_validation(workspace: Path) -> None:
    _write(workspace / "xtask.toml", '[install]\nsha256 = "not-a-digest"\n')

    with pytest.raises(ConfigError, match="invalid configuration"):
        load_config(workspace, env={})
