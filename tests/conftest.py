# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from helpers.fakes import FakeHttp, FakeResponse, RecordingRunner


@pytest.fixture
def fake_http(monkeypatch) -> Callable[..., FakeHttp]:
    """Patch ``requests.get`` used by the fetch stage with queued responses."""

    def _install(*responses: FakeResponse | BaseException) -> FakeHttp:
        fake = FakeHttp(list(responses))
        monkeypatch.setattr("xtask.installer.fetch.requests.get", fake)
        return fake

    return _install


@pytest.fixture
def recording_runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Return an empty workspace root."""

    root = tmp_path / "workspace"
    root.mkdir()
    return root
