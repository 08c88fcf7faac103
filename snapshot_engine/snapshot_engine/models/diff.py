"""Diff models for comparing two JSON snapshot documents.

``DiffStatus`` values are stable strings used in every serialised response.
``DiffMarkers`` controls how differing fields are annotated inside the
explanation text.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class DiffStatus(str, Enum):
    """Classification of a structural JSON comparison."""

    FULL_MATCH = "FullMatch"
    SUPERSET_MATCH = "SupersetMatch"
    NO_MATCH = "NoMatch"
    FIRST_ARG_IS_INVALID_JSON = "FirstArgIsInvalidJson"
    SECOND_ARG_IS_INVALID_JSON = "SecondArgIsInvalidJson"
    BOTH_ARGS_ARE_INVALID_JSON = "BothArgsAreInvalidJson"
    INVALID = "Invalid"


class DiffMarkers(BaseModel):
    """Annotation strings wrapped around differing fields in an explanation.

    ``added`` wraps fields present only in the second document, ``removed``
    wraps fields present only in the first, and ``changed`` wraps a value
    mismatch rendered as ``<old><changed_separator><new>``.
    """

    model_config = ConfigDict(frozen=True)

    added_begin: str = "[+"
    added_end: str = "+]"
    removed_begin: str = "[-"
    removed_end: str = "-]"
    changed_begin: str = "[~"
    changed_end: str = "~]"
    changed_separator: str = " => "
    indent: str = "    "

    @classmethod
    def plain(cls) -> DiffMarkers:
        """Bracketed text markers, safe for JSON responses and log files."""
        return cls()

    @classmethod
    def console(cls) -> DiffMarkers:
        """ANSI-coloured markers for terminal output."""
        reset = "\033[0m"
        return cls(
            added_begin="\033[0;32m",
            added_end=reset,
            removed_begin="\033[0;31m",
            removed_end=reset,
            changed_begin="\033[0;33m",
            changed_end=reset,
        )


class DiffResult(BaseModel):
    """Outcome of comparing two snapshot documents.  Never persisted."""

    status: DiffStatus = Field(
        ...,
        description="Overall classification of the comparison.",
    )
    explanation: str = Field(
        default="",
        description="Annotated pretty-printed union document; empty for unparsable input.",
    )
