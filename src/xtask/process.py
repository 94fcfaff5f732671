# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Blocking child-process execution with signal forwarding."""

from __future__ import annotations

import logging
import os
import shutil
import signal

# Bandit: subprocess usage is intentional; commands come from the alias table
# and are passed as argument lists without shell expansion.
import subprocess  # nosec B404
import threading
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from types import FrameType
from typing import Final, Protocol

from .constants import SIGNAL_EXIT_BASE
from .errors import ExecutableNotFoundError

LOGGER = logging.getLogger(__name__)

INTERRUPT_GRACE_SECONDS: Final[float] = 2.0
TERMINATE_GRACE_SECONDS: Final[float] = 5.0
_FORWARDED_SIGNALS: Final[tuple[str, ...]] = ("SIGTERM", "SIGHUP")


@dataclass(frozen=True, slots=True)
class InvocationResult:
    """Outcome of one dispatched command.

    Attributes:
        exit_code: Exit status reported by the child (negative when killed by a signal).
        stdout: Captured standard output when capture was requested.
        stderr: Captured standard error when capture was requested.
    """

    exit_code: int
    stdout: str | None = None
    stderr: str | None = None

    @property
    def process_exit_code(self) -> int:
        """Return the status suitable for :func:`sys.exit`.

        Signal terminations (negative return codes) map to ``128 + signal``.
        """

        if self.exit_code < 0:
            return SIGNAL_EXIT_BASE - self.exit_code
        return self.exit_code


@dataclass(frozen=True, slots=True)
class CommandOptions:
    """Execution options for a passthrough command."""

    cwd: Path | None = None
    env: Mapping[str, str] | None = None
    capture_output: bool = False


class CommandRunner(Protocol):
    """Callable contract used by the dispatcher to spawn children."""

    def __call__(self, args: Sequence[str], *, options: CommandOptions) -> InvocationResult:
        """Run ``args`` to completion and report the outcome."""
        ...


def _normalize_args(args: Sequence[str], env: Mapping[str, str] | None) -> list[str]:
    """Resolve the executable of ``args`` against the child's ``PATH``.

    Args:
        args: Command and argument sequence.
        env: Environment the child will receive; its ``PATH`` is searched.

    Returns:
        list[str]: Argument list with an absolute executable path.

    Raises:
        ValueError: If ``args`` is empty.
        ExecutableNotFoundError: If the executable cannot be located.
    """

    if not args:
        raise ValueError("subprocess command requires at least one argument")

    head, *rest = args
    head_path = Path(head)
    if head_path.is_absolute():
        return [str(head_path), *rest]

    search_path = env.get("PATH") if env is not None else None
    resolved = shutil.which(head, path=search_path)
    if resolved is None:
        raise ExecutableNotFoundError(head)
    return [resolved, *rest]


def _interrupt_child(process: subprocess.Popen[str]) -> None:
    if process.poll() is not None:
        return
    if os.name == "nt":
        process.terminate()
    else:
        process.send_signal(signal.SIGINT)


def _terminate_child(process: subprocess.Popen[str]) -> None:
    """Terminate ``process``, escalating to a kill when it outlives the grace period."""

    LOGGER.debug("terminating pid %d", process.pid)
    process.terminate()
    try:
        process.wait(timeout=TERMINATE_GRACE_SECONDS)
    except subprocess.TimeoutExpired:
        process.kill()
        process.wait()


@contextmanager
def _forward_signals(process: subprocess.Popen[str]) -> Iterator[None]:
    """Relay termination signals received by the dispatcher to ``process``.

    Handlers can only be installed from the main thread; elsewhere this is a no-op.
    """

    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def _relay(signum: int, _frame: FrameType | None) -> None:
        LOGGER.debug("forwarding signal %d to pid %d", signum, process.pid)
        if process.poll() is None:
            process.send_signal(signum)

    previous: dict[signal.Signals, object] = {}
    for name in _FORWARDED_SIGNALS:
        signum = getattr(signal, name, None)
        if signum is None:
            continue
        previous[signum] = signal.signal(signum, _relay)
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)  # type: ignore[arg-type]


def run_passthrough(args: Sequence[str], *, options: CommandOptions | None = None) -> InvocationResult:
    """Execute ``args`` synchronously and return its unmodified exit status.

    Standard streams are inherited unless ``options.capture_output`` is set.
    A ``KeyboardInterrupt`` raised while waiting is relayed to the child (if the
    terminal did not already deliver it) and the dispatcher waits a grace period
    for the child's own exit status. A child that outlives the grace period, or
    one still running when a second interrupt escapes, is terminated and then
    killed, so no child outlives this call.

    Args:
        args: Command and argument sequence to execute.
        options: Working directory, environment and capture settings.

    Returns:
        InvocationResult: Exit status and any captured output.

    Raises:
        ExecutableNotFoundError: If the executable cannot be located.
    """

    resolved_options = options or CommandOptions()
    env = dict(resolved_options.env) if resolved_options.env is not None else None
    normalized = _normalize_args(args, env)
    LOGGER.debug("spawning command=%s", normalized)

    pipe = subprocess.PIPE if resolved_options.capture_output else None
    # Bandit: argument list execution without a shell.
    process = subprocess.Popen(  # nosec B603
        normalized,
        cwd=str(resolved_options.cwd) if resolved_options.cwd is not None else None,
        env=env,
        stdout=pipe,
        stderr=pipe,
        text=True,
    )
    with _forward_signals(process):
        try:
            try:
                stdout, stderr = process.communicate()
            except KeyboardInterrupt:
                try:
                    process.wait(timeout=INTERRUPT_GRACE_SECONDS)
                except subprocess.TimeoutExpired:
                    _interrupt_child(process)
                try:
                    stdout, stderr = process.communicate(timeout=INTERRUPT_GRACE_SECONDS)
                except subprocess.TimeoutExpired:
                    _terminate_child(process)
                    stdout, stderr = process.communicate()
        finally:
            if process.poll() is None:
                _terminate_child(process)

    LOGGER.debug("command exited returncode=%d", process.returncode)
    return InvocationResult(exit_code=process.returncode, stdout=stdout, stderr=stderr)


__all__ = [
    "CommandOptions",
    "CommandRunner",
    "InvocationResult",
    "run_passthrough",
]
