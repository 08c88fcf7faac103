"""Error taxonomy for the snapshot core.

Every failure the core surfaces is a :class:`SnapshotError` subclass carrying
an :class:`ErrorKind` tag.  Callers dispatch on the tag (or the class), never
on the message text; messages are diagnostic detail only.

Messages raised for read, write, and index failures never embed filesystem
paths so that they can be returned to remote callers verbatim.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Stable classification of a core failure."""

    INVALID_FORMAT = "InvalidFormat"
    INVALID_HOST = "InvalidHost"
    INVALID_TIMESTAMP = "InvalidTimestamp"
    DUPLICATE_SNAPSHOT = "DuplicateSnapshot"
    WRITE_FAILED = "WriteFailed"
    INDEX_FAILED = "IndexFailed"
    READ_FAILED = "ReadFailed"
    NOT_FOUND = "NotFound"


# Kinds caused by malformed caller input.
CLIENT_ERROR_KINDS: frozenset[ErrorKind] = frozenset(
    {ErrorKind.INVALID_FORMAT, ErrorKind.INVALID_HOST, ErrorKind.INVALID_TIMESTAMP}
)

# Kinds caused by the storage environment rather than the caller.
SERVER_ERROR_KINDS: frozenset[ErrorKind] = frozenset(
    {ErrorKind.WRITE_FAILED, ErrorKind.INDEX_FAILED, ErrorKind.READ_FAILED}
)


class SnapshotError(Exception):
    """Base class for all snapshot core failures."""

    kind: ErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidFormatError(SnapshotError):
    """The filename does not match the canonical snapshot grammar."""

    kind = ErrorKind.INVALID_FORMAT


class InvalidHostError(SnapshotError):
    """The host portion of a filename is not a parseable IP address."""

    kind = ErrorKind.INVALID_HOST


class InvalidTimestampError(SnapshotError):
    """A timestamp (from a filename or a lookup) could not be parsed."""

    kind = ErrorKind.INVALID_TIMESTAMP


class DuplicateSnapshotError(SnapshotError):
    """A snapshot already exists for this filename or (host, timestamp)."""

    kind = ErrorKind.DUPLICATE_SNAPSHOT


class WriteFailedError(SnapshotError):
    """Snapshot bytes could not be written to durable storage."""

    kind = ErrorKind.WRITE_FAILED


class IndexFailedError(SnapshotError):
    """The index rejected or failed to record a snapshot."""

    kind = ErrorKind.INDEX_FAILED


class ReadFailedError(SnapshotError):
    """Stored snapshot bytes could not be read back."""

    kind = ErrorKind.READ_FAILED


class SnapshotNotFoundError(SnapshotError):
    """No snapshot is indexed under the requested key."""

    kind = ErrorKind.NOT_FOUND


class IndexConflictError(Exception):
    """Raised by index implementations when a uniqueness constraint is violated.

    Not part of the caller-facing taxonomy: the store translates it into
    :class:`DuplicateSnapshotError`.
    """


def describe_failure(exc: BaseException) -> str:
    """Return a caller-safe description of *exc*.

    ``OSError`` string forms embed the offending filename, so only the
    ``strerror`` text is kept.  Other exceptions are reduced to their type
    name because driver errors may echo bound parameters (including paths).
    """
    if isinstance(exc, OSError) and exc.strerror:
        return exc.strerror
    return type(exc).__name__
