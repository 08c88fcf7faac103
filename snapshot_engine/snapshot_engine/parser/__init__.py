"""Parsing of snapshot filenames and exchange timestamps."""

from snapshot_engine.parser.filename_codec import (
    FILENAME_FORMAT_HINT,
    SnapshotName,
    decode,
    encode,
    is_well_formed,
)
from snapshot_engine.parser.timestamps import format_rfc3339, parse_rfc3339

__all__ = [
    "FILENAME_FORMAT_HINT",
    "SnapshotName",
    "decode",
    "encode",
    "format_rfc3339",
    "is_well_formed",
    "parse_rfc3339",
]
