# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Atomic placement of installed executables and their receipts."""

from __future__ import annotations

import errno
import logging
import os
import shutil
import stat
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from pydantic import ValidationError

from ..errors import InstallStage, PermissionDeniedError
from .models import InstallReceipt

LOGGER = logging.getLogger(__name__)

_DENIED_ERRNOS = frozenset({errno.EACCES, errno.EPERM, errno.EROFS})


def receipt_path(destination: Path) -> Path:
    """Return the receipt location recorded next to ``destination``."""

    return destination.parent / f".{destination.name}.receipt.json"


def read_receipt(destination: Path) -> InstallReceipt | None:
    """Return the receipt stored for ``destination`` or ``None`` when absent or unreadable."""

    path = receipt_path(destination)
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except OSError as exc:
        LOGGER.debug("ignoring unreadable receipt %s: %s", path, exc)
        return None
    try:
        return InstallReceipt.model_validate_json(raw)
    except ValidationError as exc:
        LOGGER.debug("ignoring invalid receipt %s: %s", path, exc)
        return None


def install_executable(payload: Path, destination: Path) -> None:
    """Move ``payload`` into ``destination`` atomically and mark it executable.

    The payload is copied to a temporary sibling of ``destination`` and renamed
    over it, so an interruption leaves either the previous file or nothing.

    Raises:
        PermissionDeniedError: If ``destination`` or its directory is not writable.
    """

    with _atomic_target(destination) as temp_path:
        with payload.open("rb") as source, temp_path.open("wb") as handle:
            shutil.copyfileobj(source, handle)
        mode = temp_path.stat().st_mode
        temp_path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


def write_receipt(destination: Path, receipt: InstallReceipt) -> Path:
    """Atomically persist ``receipt`` next to ``destination``.

    Raises:
        PermissionDeniedError: If the receipt cannot be written.
    """

    path = receipt_path(destination)
    with _atomic_target(path) as temp_path:
        temp_path.write_text(receipt.model_dump_json(indent=2) + "\n", encoding="utf-8")
    return path


@contextmanager
def _atomic_target(destination: Path) -> Iterator[Path]:
    """Yield a temporary path that replaces ``destination`` on successful exit."""

    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        descriptor, raw_temp = tempfile.mkstemp(
            prefix=f".{destination.name}.",
            suffix=".tmp",
            dir=destination.parent,
        )
    except OSError as exc:
        if _is_denied(exc):
            raise _permission_denied(exc, destination) from exc
        raise
    os.close(descriptor)
    temp_path = Path(raw_temp)
    try:
        yield temp_path
        os.replace(temp_path, destination)
    except OSError as exc:
        if _is_denied(exc):
            raise _permission_denied(exc, destination) from exc
        raise
    finally:
        temp_path.unlink(missing_ok=True)
    LOGGER.debug("placed %s", destination)


def _is_denied(exc: OSError) -> bool:
    return isinstance(exc, PermissionError) or exc.errno in _DENIED_ERRNOS


def _permission_denied(exc: OSError, destination: Path) -> PermissionDeniedError:
    return PermissionDeniedError(
        exc.strerror or str(exc),
        stage=InstallStage.INSTALL,
        resource=str(destination),
    )


__all__ = [
    "install_executable",
    "read_receipt",
    "receipt_path",
    "write_receipt",
]
