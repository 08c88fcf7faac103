"""Tests for cli/cli/app.py -- the hostsnap CLI application.

Commands run against a real snapshot root and SQLite index under
``tmp_path`` (see ``conftest.py``), so every test exercises the same store
code the HTTP service uses.
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from cli.app import EXIT_CLIENT_ERROR, EXIT_NOT_FOUND, EXIT_SERVER_ERROR, _exit_code_for, app

runner = CliRunner()

_NAME = "host_10.0.0.1_2025-01-01T00-00-00Z.json"
_LATER = "host_10.0.0.1_2025-01-02T00-00-00Z.json"

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write(directory: Path, name: str, body: str) -> Path:
    path = directory / name
    path.write_text(body, encoding="utf-8")
    return path


def _parse_json(output: str):
    return json.loads(output)


# ---------------------------------------------------------------------------
# upload
# ---------------------------------------------------------------------------


class TestUpload:
    def test_upload_stores_file(self, incoming: Path, snapshot_env: Path) -> None:
        source = _write(incoming, _NAME, '{"v":1}')

        result = runner.invoke(app, ["upload", str(source)])

        assert result.exit_code == 0, result.output
        assert (snapshot_env.resolve() / _NAME).read_text() == '{"v":1}'
        assert "10.0.0.1" in result.output

    def test_upload_json_output(self, incoming: Path) -> None:
        source = _write(incoming, _NAME, '{"v":1}')

        result = runner.invoke(app, ["--json", "upload", str(source)])

        assert result.exit_code == 0, result.output
        data = _parse_json(result.stdout)
        assert data["failed"] == []
        assert data["stored"][0]["host"] == "10.0.0.1"
        assert data["stored"][0]["captured_at"] == "2025-01-01T00:00:00Z"
        assert "stored_location" not in data["stored"][0]

    def test_duplicate_upload_exits_client_error(self, incoming: Path) -> None:
        source = _write(incoming, _NAME, '{"v":1}')
        runner.invoke(app, ["upload", str(source)])

        result = runner.invoke(app, ["--json", "upload", str(source)])

        assert result.exit_code == EXIT_CLIENT_ERROR
        assert "DuplicateSnapshot" in _parse_json(result.stdout)["failed"][0]["detail"]

    def test_partial_batch_reports_each_file(self, incoming: Path) -> None:
        good = _write(incoming, _NAME, "{}")
        bad = _write(incoming, "notes.json", "{}")

        result = runner.invoke(app, ["--json", "upload", str(good), str(bad)])

        assert result.exit_code == EXIT_CLIENT_ERROR
        data = _parse_json(result.stdout)
        assert [entry["filename"] for entry in data["stored"]] == [_NAME]
        assert data["failed"][0]["filename"] == "notes.json"
        assert "InvalidFormat" in data["failed"][0]["detail"]

    def test_oversized_file_rejected(self, incoming: Path, snapshot_env: Path) -> None:
        source = _write(incoming, _NAME, '{"pad":"' + "x" * 5000 + '"}')

        result = runner.invoke(app, ["upload", str(source)])

        assert result.exit_code == EXIT_CLIENT_ERROR
        assert not (snapshot_env / _NAME).exists()

    def test_missing_file_is_usage_error(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["upload", str(tmp_path / "absent.json")])
        assert result.exit_code == 2


# ---------------------------------------------------------------------------
# hosts / timestamps
# ---------------------------------------------------------------------------


class TestListings:
    def test_hosts_empty(self) -> None:
        result = runner.invoke(app, ["--json", "hosts"])
        assert result.exit_code == 0, result.output
        assert _parse_json(result.stdout) == []

    def test_hosts_after_upload(self, incoming: Path) -> None:
        runner.invoke(app, ["upload", str(_write(incoming, _NAME, "{}"))])
        runner.invoke(app, ["upload", str(_write(incoming, "host_10.0.0.2_2025-01-01T00-00-00Z.json", "{}"))])

        result = runner.invoke(app, ["--json", "hosts"])

        assert _parse_json(result.stdout) == ["10.0.0.1", "10.0.0.2"]

    def test_hosts_table(self, incoming: Path) -> None:
        runner.invoke(app, ["upload", str(_write(incoming, _NAME, "{}"))])
        result = runner.invoke(app, ["hosts"])
        assert result.exit_code == 0
        assert "10.0.0.1" in result.output

    def test_timestamps_sorted(self, incoming: Path) -> None:
        runner.invoke(
            app,
            [
                "upload",
                str(_write(incoming, _LATER, "{}")),
                str(_write(incoming, "host_10.0.0.1_2025-01-01T00-00-00.5Z.json", "{}")),
            ],
        )

        result = runner.invoke(app, ["--json", "timestamps", "10.0.0.1"])

        assert result.exit_code == 0, result.output
        assert _parse_json(result.stdout) == ["2025-01-01T00:00:00.5Z", "2025-01-02T00:00:00Z"]


# ---------------------------------------------------------------------------
# diff
# ---------------------------------------------------------------------------


class TestDiff:
    def _seed(self, incoming: Path, first: str, second: str) -> None:
        result = runner.invoke(app, ["upload", str(_write(incoming, _NAME, first)), str(_write(incoming, _LATER, second))])
        assert result.exit_code == 0, result.output

    def test_json_diff(self, incoming: Path) -> None:
        self._seed(incoming, '{"a":1}', '{"a":1,"b":2}')

        result = runner.invoke(app, ["--json", "diff", "10.0.0.1", "2025-01-01T00:00:00Z", "2025-01-02T00:00:00Z"])

        assert result.exit_code == 0, result.output
        data = _parse_json(result.stdout)
        assert data["DiffStatus"] == "SupersetMatch"
        assert '[+"b": 2+]' in data["Differences"]

    def test_plain_diff_output(self, incoming: Path) -> None:
        self._seed(incoming, '{"key":"value1"}', '{"key":"value2"}')

        result = runner.invoke(app, ["diff", "--plain", "10.0.0.1", "2025-01-01T00:00:00Z", "2025-01-02T00:00:00Z"])

        assert result.exit_code == 0, result.output
        assert "NoMatch" in result.output
        assert '[~"value1" => "value2"~]' in result.output

    def test_coloured_diff_output(self, incoming: Path) -> None:
        self._seed(incoming, '{"key":"value1"}', '{"key":"value2"}')

        result = runner.invoke(app, ["diff", "10.0.0.1", "2025-01-01T00:00:00Z", "2025-01-02T00:00:00Z"])

        assert result.exit_code == 0, result.output
        assert "value1" in result.output
        assert "[~" not in result.output

    def test_unknown_snapshot_exits_not_found(self, incoming: Path) -> None:
        self._seed(incoming, "{}", "{}")

        result = runner.invoke(app, ["--json", "diff", "10.0.0.1", "2025-01-01T00:00:00Z", "2031-01-01T00:00:00Z"])

        assert result.exit_code == EXIT_NOT_FOUND
        assert _parse_json(result.stdout)["error"] == "NotFound"

    def test_bad_timestamp_exits_client_error(self) -> None:
        result = runner.invoke(app, ["diff", "10.0.0.1", "yesterday", "today"])
        assert result.exit_code == EXIT_CLIENT_ERROR
        assert "InvalidTimestamp" in result.output

    def test_vanished_file_exits_server_error(self, incoming: Path, snapshot_env: Path) -> None:
        self._seed(incoming, "{}", "{}")
        (snapshot_env.resolve() / _LATER).unlink()

        result = runner.invoke(app, ["--json", "diff", "10.0.0.1", "2025-01-01T00:00:00Z", "2025-01-02T00:00:00Z"])

        assert result.exit_code == EXIT_SERVER_ERROR
        data = _parse_json(result.stdout)
        assert data["error"] == "ReadFailed"
        assert str(snapshot_env) not in data["detail"]


# ---------------------------------------------------------------------------
# serve
# ---------------------------------------------------------------------------


class TestServe:
    def test_serve_runs_uvicorn(self) -> None:
        with patch("uvicorn.Server") as server_cls, patch("uvicorn.Config") as config_cls:
            server_cls.return_value = MagicMock()
            result = runner.invoke(app, ["serve", "--host", "127.0.0.1", "--port", "9123"])

        assert result.exit_code == 0, result.output
        args, kwargs = config_cls.call_args
        assert args[0] == "api.main:app"
        assert kwargs["host"] == "127.0.0.1"
        assert kwargs["port"] == 9123
        server_cls.return_value.run.assert_called_once()

    def test_server_error_exits_server_error(self) -> None:
        with patch("uvicorn.Server") as server_cls, patch("uvicorn.Config"):
            server_cls.return_value.run.side_effect = OSError("address already in use")
            result = runner.invoke(app, ["serve", "--port", "9124"])

        assert result.exit_code == EXIT_SERVER_ERROR


def test_no_args_shows_help() -> None:
    result = runner.invoke(app, [])
    assert "upload" in result.output


@pytest.mark.parametrize("command", ["upload", "hosts", "timestamps", "diff", "serve"])
def test_command_help(command: str) -> None:
    result = runner.invoke(app, [command, "--help"])
    assert result.exit_code == 0


@pytest.mark.parametrize(
    ("kind", "expected"),
    [
        ("InvalidFormat", EXIT_CLIENT_ERROR),
        ("InvalidHost", EXIT_CLIENT_ERROR),
        ("InvalidTimestamp", EXIT_CLIENT_ERROR),
        ("DuplicateSnapshot", EXIT_CLIENT_ERROR),
        ("NotFound", EXIT_NOT_FOUND),
        ("WriteFailed", EXIT_SERVER_ERROR),
        ("IndexFailed", EXIT_SERVER_ERROR),
        ("ReadFailed", EXIT_SERVER_ERROR),
    ],
)
def test_exit_code_per_error_kind(kind: str, expected: int) -> None:
    from snapshot_engine.errors import ErrorKind, SnapshotError

    error_cls = next(cls for cls in SnapshotError.__subclasses__() if cls.kind == ErrorKind(kind))
    assert _exit_code_for(error_cls("detail")) == expected


def test_unexpected_error_is_server_error() -> None:
    assert _exit_code_for(RuntimeError("boom")) == EXIT_SERVER_ERROR
