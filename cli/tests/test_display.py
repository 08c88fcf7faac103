"""Tests for cli/cli/display.py Rich rendering helpers."""

from __future__ import annotations

import io
from datetime import UTC, datetime

import pytest
from rich.console import Console
from snapshot_engine.models.diff import DiffMarkers, DiffResult, DiffStatus
from snapshot_engine.models.snapshot import SnapshotRecord

from cli.display import display_diff, display_hosts, display_timestamps, display_upload_results


@pytest.fixture
def console() -> Console:
    return Console(file=io.StringIO(), width=120, color_system=None)


def _text(console: Console) -> str:
    return console.file.getvalue()  # type: ignore[attr-defined]


class TestDisplay:
    def test_upload_results(self, console: Console) -> None:
        record = SnapshotRecord(
            host_identifier="10.0.0.1",
            captured_at=datetime(2025, 1, 1, tzinfo=UTC),
            stored_location="/srv/snapshots/host_10.0.0.1_2025-01-01T00-00-00Z.json",
            original_name="host_10.0.0.1_2025-01-01T00-00-00Z.json",
        )
        display_upload_results(console, [record], [("bad.json", "InvalidFormat: expected [.fraction]")])

        out = _text(console)
        assert "2025-01-01T00:00:00Z" in out
        assert "[.fraction]" in out
        assert "1 stored, 1 failed" in out
        assert "/srv/snapshots" not in out

    def test_hosts_empty(self, console: Console) -> None:
        display_hosts(console, [])
        assert "No snapshots" in _text(console)

    def test_timestamps(self, console: Console) -> None:
        display_timestamps(console, "10.0.0.1", ["2025-01-01T00:00:00Z", "2025-01-02T00:00:00Z"])
        out = _text(console)
        assert "Snapshots for 10.0.0.1" in out
        assert out.index("2025-01-01") < out.index("2025-01-02")
        assert "host_10.0.0.1_2025-01-01T00-00-00Z.json" in out
        assert "host_10.0.0.1_2025-01-02T00-00-00Z.json" in out

    def test_plain_diff_markers_not_treated_as_markup(self, console: Console) -> None:
        result = DiffResult(status=DiffStatus.SUPERSET_MATCH, explanation='{\n    [+"b": 2+]\n}')
        display_diff(console, result, ansi=False)
        out = _text(console)
        assert "SupersetMatch" in out
        assert '[+"b": 2+]' in out

    def test_ansi_diff_decoded(self, console: Console) -> None:
        markers = DiffMarkers.console()
        explanation = f'{{\n    {markers.removed_begin}"a": 1{markers.removed_end}\n}}'
        display_diff(console, DiffResult(status=DiffStatus.NO_MATCH, explanation=explanation), ansi=True)
        out = _text(console)
        assert '"a": 1' in out
        assert "\033[" not in out

    def test_invalid_diff_has_no_body(self, console: Console) -> None:
        display_diff(console, DiffResult(status=DiffStatus.BOTH_ARGS_ARE_INVALID_JSON), ansi=False)
        assert "BothArgsAreInvalidJson" in _text(console)
