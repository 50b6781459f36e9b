"""Shared test fixtures for bak-archiver tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from helpers import RecordingReportSink


@pytest.fixture
def sink() -> RecordingReportSink:
    return RecordingReportSink()


@pytest.fixture
def backup_root(tmp_path: Path) -> Path:
    """A small tree with three .bak files and some noise."""
    root = tmp_path / "data"
    (root / "db" / "nightly").mkdir(parents=True)
    (root / "config").mkdir()
    (root / "db" / "nightly" / "sales.bak").write_bytes(b"sales backup")
    (root / "db" / "users.BAK").write_bytes(b"users backup")
    (root / "config" / "app.bak").write_text("key=value\n")
    (root / "config" / "app.ini").write_text("key=value\n")
    (root / "readme.txt").write_text("not a backup")
    return root
