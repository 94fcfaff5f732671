# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Command dispatcher resolving aliases and built-ins into one invocation."""

from __future__ import annotations

import logging
import os
import shlex
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

from .aliases import AliasTable, default_alias_table
from .config.models import XtaskConfig
from .constants import PROG_NAME
from .errors import UnknownAliasError, UnknownCommandError
from .platform import host_triple
from .process import CommandOptions, CommandRunner, InvocationResult, run_passthrough
from .profiles import ProfileResolver, active_target, default_profile_resolver

LOGGER = logging.getLogger(__name__)

BuiltinHandler = Callable[[Sequence[str]], int]


@dataclass(frozen=True, slots=True)
class PlannedInvocation:
    """Fully resolved invocation produced without spawning anything.

    Attributes:
        name: Name the caller asked for.
        argv: Argument vector that would be executed.
        target: Active build target used for profile selection.
        overrides: Environment overrides layered onto the inherited environment.
        builtin: ``True`` when ``name`` is handled in-process.
    """

    name: str
    argv: tuple[str, ...]
    target: str | None = None
    overrides: Mapping[str, str] = field(default_factory=dict)
    builtin: bool = False

    def render(self) -> str:
        """Return the invocation as a shell-quoted command line."""

        assignments = [f"{key}={shlex.quote(value)}" for key, value in sorted(self.overrides.items())]
        return " ".join([*assignments, shlex.join(self.argv)])


class Dispatcher:
    """Resolve a name against the alias table and built-ins, then execute it."""

    def __init__(
        self,
        aliases: AliasTable | None = None,
        profiles: ProfileResolver | None = None,
        *,
        builtins: Mapping[str, BuiltinHandler] | None = None,
        runner: CommandRunner | None = None,
        configured_target: str | None = None,
        host_target: str | None = None,
        cwd: Path | None = None,
    ) -> None:
        """Initialise the dispatcher.

        Args:
            aliases: Alias table; defaults to the built-in table.
            profiles: Toolchain profiles; defaults to the built-in profiles.
            builtins: In-process subcommands keyed by name (``install``).
            runner: Callable spawning the resolved command; defaults to
                :func:`~xtask.process.run_passthrough`.
            configured_target: Build target from configuration, if any.
            host_target: Host triple used when no other target is active.
            cwd: Working directory for spawned commands.
        """

        self._aliases = aliases if aliases is not None else default_alias_table()
        self._profiles = profiles if profiles is not None else default_profile_resolver()
        self._builtins: Mapping[str, BuiltinHandler] = MappingProxyType(dict(builtins or {}))
        self._runner = runner or run_passthrough
        self._configured_target = configured_target
        self._host_target = host_target
        self._cwd = cwd

    @classmethod
    def from_config(
        cls,
        config: XtaskConfig,
        *,
        builtins: Mapping[str, BuiltinHandler] | None = None,
        runner: CommandRunner | None = None,
        cwd: Path | None = None,
    ) -> Dispatcher:
        """Build a dispatcher from a validated configuration.

        Raises:
            ConfigError: If the configured alias table is invalid.
        """

        return cls(
            config.alias_table(),
            config.profile_resolver(),
            builtins=builtins,
            runner=runner,
            configured_target=config.build.target,
            host_target=host_triple(),
            cwd=cwd,
        )

    @property
    def aliases(self) -> AliasTable:
        return self._aliases

    @property
    def profiles(self) -> ProfileResolver:
        return self._profiles

    @property
    def builtin_names(self) -> tuple[str, ...]:
        return tuple(sorted(self._builtins))

    def plan(
        self,
        name: str,
        extra_args: Sequence[str] = (),
        env: Mapping[str, str] | None = None,
    ) -> PlannedInvocation:
        """Resolve ``name`` and ``extra_args`` without executing anything.

        Args:
            name: Alias or built-in command name.
            extra_args: Trailing arguments supplied by the caller.
            env: Inherited environment; defaults to :data:`os.environ`.

        Returns:
            PlannedInvocation: Resolved argument vector, target and overrides.

        Raises:
            UnknownCommandError: If ``name`` is neither an alias nor a built-in.
            ArgumentsNotAcceptedError: If the alias rejects trailing arguments.
        """

        try:
            entry = self._aliases.resolve(name)
        except UnknownAliasError:
            if name not in self._builtins:
                raise UnknownCommandError(name) from None
            return PlannedInvocation(name=name, argv=(PROG_NAME, name, *extra_args), builtin=True)

        argv = entry.build_argv(extra_args)
        base_env = os.environ if env is None else env
        target = active_target(
            extra_args,
            base_env,
            configured=self._configured_target,
            host=self._host_target,
        )
        return PlannedInvocation(
            name=name,
            argv=tuple(argv),
            target=target,
            overrides=self._profiles.overrides_for(target),
        )

    def dispatch(
        self,
        name: str,
        extra_args: Sequence[str] = (),
        env: Mapping[str, str] | None = None,
        *,
        capture_output: bool = False,
    ) -> InvocationResult:
        """Resolve ``name`` and execute it, returning the child's exit status unchanged.

        Args:
            name: Alias or built-in command name.
            extra_args: Trailing arguments forwarded verbatim.
            env: Inherited environment; defaults to :data:`os.environ`. It is
                copied, never mutated.
            capture_output: Capture the child's stdout and stderr.

        Returns:
            InvocationResult: Exit status (and captured output) of the single
            spawned process or built-in.

        Raises:
            UnknownCommandError: If ``name`` is neither an alias nor a built-in.
            ArgumentsNotAcceptedError: If the alias rejects trailing arguments.
            ExecutableNotFoundError: If the resolved executable is missing.
        """

        planned = self.plan(name, extra_args, env)
        if planned.builtin:
            LOGGER.debug("delegating to built-in command=%s args=%s", name, list(extra_args))
            return InvocationResult(exit_code=self._builtins[name](list(extra_args)))

        base_env = os.environ if env is None else env
        child_env = dict(base_env)
        child_env.update(planned.overrides)
        if planned.overrides:
            LOGGER.debug("applying profile target=%s overrides=%s", planned.target, dict(planned.overrides))
        return self._runner(
            list(planned.argv),
            options=CommandOptions(cwd=self._cwd, env=child_env, capture_output=capture_output),
        )


__all__ = ["BuiltinHandler", "Dispatcher", "PlannedInvocation"]
