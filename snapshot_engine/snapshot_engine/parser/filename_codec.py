"""Canonical snapshot filename codec.

A snapshot filename encodes the originating host and the capture instant::

    host_<ipv4>_<YYYY-MM-DD>T<HH>-<MM>-<SS>[.fraction](Z|±HH-MM).json

Colons in the clock and UTC offset are replaced by hyphens so the name is
safe to use directly as a file name.  This module is the only authority on
what a well-formed snapshot name is.

Two levels of strictness are offered:

* :func:`is_well_formed` is purely syntactic; an IPv4-shaped but
  out-of-range address such as ``999.999.999.999`` passes.
* :func:`decode` additionally requires the address to parse as an IP and the
  timestamp fields to name a real instant.  The snapshot store always uses
  this strict path.
"""

from __future__ import annotations

import ipaddress
import re
from datetime import UTC, datetime
from typing import NamedTuple

from snapshot_engine.errors import InvalidFormatError, InvalidHostError
from snapshot_engine.parser.timestamps import build_instant

FILENAME_FORMAT_HINT = "expected host_<ip>_<YYYY-MM-DD>T<HH-MM-SS>[.fraction](Z|±HH-MM).json"

_FILENAME_RE = re.compile(
    r"^host_"
    r"((?:[0-9]{1,3}\.){3}[0-9]{1,3})_"  # IPv4
    r"([0-9]{4}-[0-9]{2}-[0-9]{2})T"  # date
    r"([0-9]{2})-([0-9]{2})-([0-9]{2})"  # HH-MM-SS
    r"(?:\.([0-9]{1,6}))?"  # fractional seconds
    r"(Z|[+\-][0-9]{2}-[0-9]{2})"  # Z or ±HH-MM
    r"\.json$"
)


class SnapshotName(NamedTuple):
    """Metadata decoded from a canonical snapshot filename."""

    host: str
    captured_at: datetime


def is_well_formed(filename: str) -> bool:
    """Return ``True`` if *filename* matches the canonical grammar."""
    return _FILENAME_RE.match(filename) is not None


def decode(filename: str) -> SnapshotName:
    """Decode *filename* into its host and UTC capture instant.

    Raises
    ------
    InvalidFormatError
        If the name does not match the canonical grammar.
    InvalidHostError
        If the host portion is not a parseable IP address.
    InvalidTimestampError
        If the timestamp fields do not name a real instant.
    """
    match = _FILENAME_RE.match(filename)
    if match is None:
        raise InvalidFormatError(f"filename {filename!r} does not match pattern: {FILENAME_FORMAT_HINT}")

    host, date_text, hour, minute, second, fraction, offset = match.groups()
    try:
        ipaddress.ip_address(host)
    except ValueError as exc:
        raise InvalidHostError(f"invalid IPv4 address in filename: {host!r}") from exc

    return SnapshotName(host, build_instant(date_text, hour, minute, second, fraction, offset))


def encode(host: str, captured_at: datetime) -> str:
    """Build the canonical ``Z`` filename for *host* at *captured_at*."""
    if captured_at.tzinfo is None:
        captured_at = captured_at.replace(tzinfo=UTC)
    captured_at = captured_at.astimezone(UTC)
    stamp = captured_at.strftime("%Y-%m-%dT%H-%M-%S")
    if captured_at.microsecond:
        stamp += "." + f"{captured_at.microsecond:06d}".rstrip("0")
    return f"host_{host}_{stamp}Z.json"
