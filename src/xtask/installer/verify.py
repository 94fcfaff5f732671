# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Integrity checks and payload extraction for downloaded artifacts."""

from __future__ import annotations

import gzip
import hashlib
import logging
import shutil
import zipfile
import zlib
from pathlib import Path, PurePosixPath
from typing import Final

from ..errors import CorruptArtifactError, InstallStage
from ..platform import ArchiveFormat, ExecutableFormat, HostPlatform
from .fetch import FetchedArtifact

LOGGER = logging.getLogger(__name__)

GZIP_MAGIC: Final[bytes] = b"\x1f\x8b"
ZIP_MAGIC: Final[bytes] = b"PK\x03\x04"
EXECUTABLE_MAGIC: Final[dict[ExecutableFormat, tuple[bytes, ...]]] = {
    ExecutableFormat.ELF: (b"\x7fELF",),
    ExecutableFormat.MACH_O: (
        b"\xfe\xed\xfa\xce",
        b"\xfe\xed\xfa\xcf",
        b"\xce\xfa\xed\xfe",
        b"\xcf\xfa\xed\xfe",
        b"\xca\xfe\xba\xbe",
    ),
    ExecutableFormat.PE: (b"MZ",),
}
_HASH_CHUNK: Final[int] = 1024 * 1024


def sha256_file(path: Path) -> str:
    """Return the hexadecimal SHA-256 digest of ``path``."""

    digest = hashlib.sha256()
    with path.open("rb") as handle:
        for block in iter(lambda: handle.read(_HASH_CHUNK), b""):
            digest.update(block)
    return digest.hexdigest()


def verify_artifact(
    artifact: FetchedArtifact,
    *,
    host: HostPlatform,
    tool: str,
    output: Path,
    expected_sha256: str | None = None,
) -> Path:
    """Validate ``artifact`` and extract the executable it carries to ``output``.

    Args:
        artifact: Staged download produced by the fetch stage.
        host: Platform the executable must run on.
        tool: Executable name used to locate the member inside zip archives.
        output: File receiving the decompressed executable.
        expected_sha256: Optional digest the downloaded artifact must match.

    Returns:
        Path: ``output``, holding a payload with the expected binary signature.

    Raises:
        CorruptArtifactError: If the artifact is empty, truncated, fails its
            checksum, cannot be decompressed or does not contain an executable
            for ``host``.
    """

    source = artifact.path
    resource = str(source)
    if artifact.size <= 0 or not source.is_file() or source.stat().st_size == 0:
        raise _corrupt("downloaded artifact is empty", resource)
    if artifact.expected_size is not None and artifact.size != artifact.expected_size:
        raise _corrupt(
            f"size mismatch: received {artifact.size} bytes, expected {artifact.expected_size}",
            resource,
        )
    if expected_sha256 is not None:
        actual = sha256_file(source)
        if actual.lower() != expected_sha256.strip().lower():
            raise _corrupt(f"sha256 mismatch: got {actual}, expected {expected_sha256}", resource)

    if host.archive_format is ArchiveFormat.ZIP:
        _extract_zip(source, output, member_name=f"{tool}{host.executable_suffix}")
    else:
        _extract_gzip(source, output)

    if output.stat().st_size == 0:
        raise _corrupt("archive contains an empty payload", resource)
    _check_signature(output, host)
    LOGGER.debug("verified %s -> %s", source, output)
    return output


def _extract_gzip(source: Path, output: Path) -> None:
    with source.open("rb") as handle:
        if handle.read(len(GZIP_MAGIC)) != GZIP_MAGIC:
            raise _corrupt("artifact is not a gzip stream", str(source))
    try:
        with gzip.open(source, "rb") as compressed, output.open("wb") as target:
            shutil.copyfileobj(compressed, target)
    except (EOFError, gzip.BadGzipFile, zlib.error) as exc:
        raise _corrupt(f"gzip stream is damaged: {exc}", str(source)) from exc


def _extract_zip(source: Path, output: Path, *, member_name: str) -> None:
    with source.open("rb") as handle:
        if handle.read(len(ZIP_MAGIC)) != ZIP_MAGIC:
            raise _corrupt("artifact is not a zip archive", str(source))
    try:
        with zipfile.ZipFile(source) as archive:
            damaged = archive.testzip()
            if damaged is not None:
                raise _corrupt(f"zip member '{damaged}' failed its CRC check", str(source))
            member = _find_member(archive, member_name)
            if member is None:
                raise _corrupt(f"archive does not contain '{member_name}'", str(source))
            with archive.open(member) as payload, output.open("wb") as target:
                shutil.copyfileobj(payload, target)
    except (zipfile.BadZipFile, EOFError, zlib.error) as exc:
        raise _corrupt(f"zip archive is damaged: {exc}", str(source)) from exc


def _find_member(archive: zipfile.ZipFile, member_name: str) -> zipfile.ZipInfo | None:
    for info in archive.infolist():
        if info.is_dir():
            continue
        if PurePosixPath(info.filename).name.lower() == member_name.lower():
            return info
    return None


def _check_signature(payload: Path, host: HostPlatform) -> None:
    expected = host.executable_format
    if expected is None:
        return
    with payload.open("rb") as handle:
        header = handle.read(4)
    if not any(header.startswith(magic) for magic in EXECUTABLE_MAGIC[expected]):
        raise _corrupt(f"payload is not a {expected.value} executable", str(payload))


def _corrupt(detail: str, resource: str) -> CorruptArtifactError:
    return CorruptArtifactError(detail, stage=InstallStage.VERIFY, resource=resource)


__all__ = ["EXECUTABLE_MAGIC", "sha256_file", "verify_artifact"]
