"""Tests for RFC 3339 parsing and formatting."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest

from snapshot_engine.errors import ErrorKind, InvalidTimestampError
from snapshot_engine.parser.timestamps import build_instant, format_rfc3339, parse_rfc3339


class TestParseRFC3339:
    def test_zulu(self) -> None:
        assert parse_rfc3339("2025-01-01T00:00:00Z") == datetime(2025, 1, 1, tzinfo=UTC)

    def test_result_is_utc(self) -> None:
        parsed = parse_rfc3339("2025-01-01T00:00:00Z")
        assert parsed.utcoffset() == timedelta(0)

    def test_positive_offset_normalised(self) -> None:
        assert parse_rfc3339("2025-01-01T05:30:00+05:30") == datetime(2025, 1, 1, tzinfo=UTC)

    def test_negative_offset_normalised(self) -> None:
        assert parse_rfc3339("2024-12-31T19:00:00-05:00") == datetime(2025, 1, 1, tzinfo=UTC)

    def test_fraction_kept(self) -> None:
        assert parse_rfc3339("2025-01-01T00:00:00.25Z").microsecond == 250000

    def test_microsecond_fraction(self) -> None:
        assert parse_rfc3339("2025-01-01T00:00:00.123456Z").microsecond == 123456

    @pytest.mark.parametrize("fraction", ["1234567", "123456789"])
    def test_sub_microsecond_fraction_rejected(self, fraction: str) -> None:
        with pytest.raises(InvalidTimestampError):
            parse_rfc3339(f"2025-01-01T00:00:00.{fraction}Z")

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "2025-01-01",
            "2025-01-01 00:00:00Z",
            "2025-01-01T00:00:00",
            "2025-01-01T00-00-00Z",
            "2025-01-01T00:00:00+0530",
            "2025-01-01T00:00:00.Z",
            "2025-01-01T00:00:00.1234567890Z",
            "not-a-timestamp",
        ],
    )
    def test_malformed_rejected(self, text: str) -> None:
        with pytest.raises(InvalidTimestampError) as exc_info:
            parse_rfc3339(text)
        assert exc_info.value.kind == ErrorKind.INVALID_TIMESTAMP

    @pytest.mark.parametrize(
        "text",
        [
            "2025-13-01T00:00:00Z",
            "2025-02-30T00:00:00Z",
            "2025-01-01T24:00:00Z",
            "2025-01-01T00:60:00Z",
            "2025-01-01T00:00:00+24:00",
            "2025-01-01T00:00:00+05:60",
        ],
    )
    def test_out_of_range_rejected(self, text: str) -> None:
        with pytest.raises(InvalidTimestampError):
            parse_rfc3339(text)


class TestBuildInstant:
    def test_hyphenated_offset(self) -> None:
        instant = build_instant("2025-06-15", "12", "00", "00", None, "+02-00")
        assert instant == datetime(2025, 6, 15, 10, 0, tzinfo=UTC)

    def test_short_fraction_padded(self) -> None:
        instant = build_instant("2025-06-15", "12", "00", "00", "5", "Z")
        assert instant.microsecond == 500000

    def test_overflow_rejected(self) -> None:
        with pytest.raises(InvalidTimestampError):
            build_instant("0001-01-01", "00", "00", "00", None, "+01-00")


class TestFormatRFC3339:
    def test_whole_seconds(self) -> None:
        assert format_rfc3339(datetime(2025, 1, 1, tzinfo=UTC)) == "2025-01-01T00:00:00Z"

    def test_fraction_trailing_zeros_stripped(self) -> None:
        value = datetime(2025, 1, 1, 0, 0, 0, 250000, tzinfo=UTC)
        assert format_rfc3339(value) == "2025-01-01T00:00:00.25Z"

    def test_offset_converted_to_utc(self) -> None:
        value = datetime(2025, 1, 1, 5, 30, tzinfo=timezone(timedelta(hours=5, minutes=30)))
        assert format_rfc3339(value) == "2025-01-01T00:00:00Z"

    def test_naive_treated_as_utc(self) -> None:
        assert format_rfc3339(datetime(2025, 1, 1, 8, 0)) == "2025-01-01T08:00:00Z"

    @pytest.mark.parametrize(
        "text",
        ["2025-01-01T00:00:00Z", "2025-03-09T17:45:01.5Z", "1999-12-31T23:59:59.000001Z"],
    )
    def test_canonical_text_is_stable(self, text: str) -> None:
        assert format_rfc3339(parse_rfc3339(text)) == text


class TestBuildInstantPrecision:
    def test_seven_digit_fraction_rejected(self) -> None:
        with pytest.raises(InvalidTimestampError):
            build_instant("2025-06-15", "12", "00", "00", "1234567", "Z")
