"""Shared fixtures for CLI tests.

Every test gets its own snapshot root and SQLite index under ``tmp_path``,
configured through the same ``SNAPSHOT_`` environment variables an operator
would set.
"""

from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def snapshot_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Point the CLI at a temporary snapshot root and index."""
    root = tmp_path / "snapshots"
    monkeypatch.setenv("SNAPSHOT_SNAPSHOT_ROOT", str(root))
    monkeypatch.setenv("SNAPSHOT_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'state' / 'index.db'}")
    monkeypatch.setenv("SNAPSHOT_MAX_SNAPSHOT_BYTES", "4096")
    monkeypatch.chdir(tmp_path)
    return root


@pytest.fixture
def incoming(tmp_path: Path) -> Path:
    """Directory holding files to upload."""
    path = tmp_path / "incoming"
    path.mkdir()
    return path

