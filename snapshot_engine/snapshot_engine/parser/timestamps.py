"""RFC 3339 timestamp handling for the lookup exchange format.

Lookups and listings exchange timestamps as ``YYYY-MM-DDTHH:MM:SS[.f](Z|±HH:MM)``
with standard colons.  Canonical filenames carry the same fields with the
colons replaced by hyphens; both representations are converted to a
timezone-aware UTC :class:`~datetime.datetime` through :func:`build_instant`.

Fractional seconds may carry up to six digits, the precision of a Python
datetime, so every accepted timestamp round-trips exactly.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime, timedelta, timezone

from snapshot_engine.errors import InvalidTimestampError

_RFC3339_RE = re.compile(
    r"^([0-9]{4})-([0-9]{2})-([0-9]{2})"
    r"T([0-9]{2}):([0-9]{2}):([0-9]{2})"
    r"(?:\.([0-9]{1,6}))?"
    r"(Z|[+\-][0-9]{2}:[0-9]{2})$"
)


def build_instant(
    date_text: str,
    hour: str,
    minute: str,
    second: str,
    fraction: str | None,
    offset: str,
) -> datetime:
    """Assemble validated timestamp fields into a UTC datetime.

    Parameters
    ----------
    date_text:
        ``YYYY-MM-DD``.
    hour, minute, second:
        Two-digit clock fields.
    fraction:
        Fractional-second digits without the leading dot, or ``None``.
    offset:
        ``"Z"`` or ``±HH?MM`` where ``?`` is any single separator character.

    Raises
    ------
    InvalidTimestampError
        If any field is out of range.
    """
    try:
        year, month, day = (int(part) for part in date_text.split("-"))
        microsecond = int(fraction.ljust(6, "0")) if fraction else 0
        tz = _parse_offset(offset)
        local = datetime(year, month, day, int(hour), int(minute), int(second), microsecond, tzinfo=tz)
        return local.astimezone(UTC)
    except (ValueError, OverflowError) as exc:
        raise InvalidTimestampError(f"invalid timestamp: {exc}") from exc


def _parse_offset(offset: str) -> timezone:
    if offset == "Z":
        return UTC
    sign = -1 if offset[0] == "-" else 1
    hours, minutes = int(offset[1:3]), int(offset[4:6])
    if hours > 23 or minutes > 59:
        raise ValueError(f"UTC offset out of range: {offset}")
    return timezone(sign * timedelta(hours=hours, minutes=minutes))


def parse_rfc3339(text: str) -> datetime:
    """Parse an RFC 3339 timestamp into a UTC datetime.

    Raises
    ------
    InvalidTimestampError
        If *text* is not RFC 3339 or names an impossible instant.
    """
    match = _RFC3339_RE.match(text)
    if match is None:
        raise InvalidTimestampError(f"incorrectly formatted timestamp string: {text!r}")
    year, month, day, hour, minute, second, fraction, offset = match.groups()
    return build_instant(f"{year}-{month}-{day}", hour, minute, second, fraction, offset)


def format_rfc3339(value: datetime) -> str:
    """Format *value* as an RFC 3339 UTC string with a ``Z`` designator.

    Naive datetimes are taken to be UTC.  The fractional part is emitted
    without trailing zeros and omitted entirely when zero.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    value = value.astimezone(UTC)
    text = value.strftime("%Y-%m-%dT%H:%M:%S")
    if value.microsecond:
        text += "." + f"{value.microsecond:06d}".rstrip("0")
    return text + "Z"
