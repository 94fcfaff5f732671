# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Streaming artifact download with resume and bounded retry."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Final

import requests
from requests.exceptions import ChunkedEncodingError

from ..errors import InstallStage, NetworkFailureError, NotFoundError

LOGGER = logging.getLogger(__name__)

CHUNK_SIZE: Final[int] = 64 * 1024
HTTP_PARTIAL_CONTENT: Final[int] = 206
HTTP_CLIENT_ERROR: Final[int] = 400
HTTP_RANGE_NOT_SATISFIABLE: Final[int] = 416
HTTP_SERVER_ERROR: Final[int] = 500
RETRYABLE_CLIENT_STATUSES: Final[frozenset[int]] = frozenset({408, 429})
_TRANSPORT_ERRORS: Final[tuple[type[Exception], ...]] = (
    requests.ConnectionError,
    requests.Timeout,
    ChunkedEncodingError,
)

ProgressCallback = Callable[[int, int | None], None]
RetryCallback = Callable[[int, NetworkFailureError, float], None]


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Exponential backoff applied to retryable fetch failures.

    Attributes:
        attempts: Total number of attempts, including the first one.
        backoff: Delay in seconds after the first failure.
        max_backoff: Upper bound for any single delay.
    """

    attempts: int = 4
    backoff: float = 0.5
    max_backoff: float = 8.0

    def __post_init__(self) -> None:
        if self.attempts < 1:
            raise ValueError("retry policy requires at least one attempt")

    def delay(self, attempt: int) -> float:
        """Return the sleep applied after failed attempt number ``attempt`` (1-based)."""

        return min(self.backoff * (2 ** max(attempt - 1, 0)), self.max_backoff)


@dataclass(frozen=True, slots=True)
class FetchedArtifact:
    """Artifact bytes staged on disk by :func:`fetch_artifact`."""

    path: Path
    size: int
    expected_size: int | None = None


def fetch_artifact(
    url: str,
    staging: Path,
    *,
    policy: RetryPolicy | None = None,
    timeout: float = 60.0,
    sleep: Callable[[float], None] = time.sleep,
    on_progress: ProgressCallback | None = None,
    on_retry: RetryCallback | None = None,
) -> FetchedArtifact:
    """Download ``url`` into ``staging``, retrying transient failures.

    Partial content left by an interrupted attempt is resumed with an HTTP
    ``Range`` request when the server honours it. A body that is still shorter
    than its ``Content-Length`` on the last attempt is returned as is, and
    verification rejects it as corrupt.

    Args:
        url: Artifact URL.
        staging: File receiving the downloaded bytes.
        policy: Retry policy; defaults to :class:`RetryPolicy`.
        timeout: Per-request connect and read timeout in seconds.
        sleep: Callable used to wait between attempts.
        on_progress: Called with ``(downloaded, total)`` after each chunk.
        on_retry: Called with ``(attempt, error, delay)`` before each retry.

    Returns:
        FetchedArtifact: Location and size of the staged artifact.

    Raises:
        NetworkFailureError: If every attempt failed with a transient error.
        NotFoundError: If the server answered with a terminal client error.
    """

    active_policy = policy or RetryPolicy()
    attempt = 1
    while True:
        try:
            return _download_once(
                url,
                staging,
                timeout=timeout,
                on_progress=on_progress,
                final_attempt=attempt >= active_policy.attempts,
            )
        except NetworkFailureError as exc:
            if attempt >= active_policy.attempts:
                raise NetworkFailureError(
                    f"{exc.detail} (gave up after {attempt} attempts)",
                    stage=InstallStage.FETCH,
                    resource=url,
                ) from exc
            delay = active_policy.delay(attempt)
            LOGGER.debug("fetch attempt %d failed (%s); retrying in %.2fs", attempt, exc.detail, delay)
            if on_retry is not None:
                on_retry(attempt, exc, delay)
            sleep(delay)
            attempt += 1


def _download_once(
    url: str,
    staging: Path,
    *,
    timeout: float,
    on_progress: ProgressCallback | None,
    final_attempt: bool = False,
) -> FetchedArtifact:
    offset = staging.stat().st_size if staging.exists() else 0
    headers = {"Range": f"bytes={offset}-"} if offset else {}
    try:
        response = requests.get(url, stream=True, timeout=timeout, headers=headers)
    except _TRANSPORT_ERRORS as exc:
        raise _network_failure(str(exc), url) from exc

    with response:
        status = response.status_code
        if status == HTTP_RANGE_NOT_SATISFIABLE:
            staging.unlink(missing_ok=True)
            raise _network_failure("partial download could not be resumed; restarting", url)
        if status in RETRYABLE_CLIENT_STATUSES or status >= HTTP_SERVER_ERROR:
            raise _network_failure(f"HTTP {status}", url)
        if status >= HTTP_CLIENT_ERROR:
            raise NotFoundError(f"HTTP {status}", stage=InstallStage.FETCH, resource=url)

        resumed = bool(offset) and status == HTTP_PARTIAL_CONTENT
        if not resumed:
            offset = 0
        length = _content_length(response)
        total = offset + length if length is not None else None
        downloaded = offset
        try:
            with staging.open("ab" if resumed else "wb") as handle:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if not chunk:
                        continue
                    handle.write(chunk)
                    downloaded += len(chunk)
                    if on_progress is not None:
                        on_progress(downloaded, total)
        except _TRANSPORT_ERRORS as exc:
            raise _network_failure(f"transfer interrupted after {downloaded} bytes: {exc}", url) from exc

    if total is not None and downloaded < total:
        if not final_attempt:
            raise _network_failure(f"connection closed after {downloaded} of {total} bytes", url)
        LOGGER.debug("final attempt ended at %d of %d bytes; leaving it to verification", downloaded, total)
    LOGGER.debug("fetched %s bytes=%d resumed=%s", url, downloaded, resumed)
    return FetchedArtifact(path=staging, size=downloaded, expected_size=total)


def _content_length(response: requests.Response) -> int | None:
    raw = response.headers.get("Content-Length")
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def _network_failure(detail: str, url: str) -> NetworkFailureError:
    return NetworkFailureError(detail, stage=InstallStage.FETCH, resource=url)


__all__ = [
    "FetchedArtifact",
    "ProgressCallback",
    "RetryCallback",
    "RetryPolicy",
    "fetch_artifact",
]
