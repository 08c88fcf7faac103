"""Structural diff engine for JSON snapshot documents.

Compares two JSON documents and produces a :class:`DiffResult` carrying a
classification and an annotated, pretty-printed union of both documents.

Classification, from the point of view of the first document (A) against the
second (B):

* ``FullMatch``      -- structurally identical.
* ``SupersetMatch``  -- every field of A is present and equal in B, and B has
  more (extra object keys or extra trailing array elements).
* ``NoMatch``        -- at least one field of A is missing from B or differs.

Object keys are visited in sorted order and every value is rendered with a
fixed indent, so identical inputs always produce an identical explanation.
The engine only reads its inputs; results are never cached or persisted.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from snapshot_engine.errors import ReadFailedError, describe_failure
from snapshot_engine.models.diff import DiffMarkers, DiffResult, DiffStatus

logger = logging.getLogger(__name__)

# Deepest container nesting accepted.  The walk recurses twice per level, so
# this stays well inside the interpreter's default recursion limit.
DEFAULT_MAX_DEPTH = 256

_TOO_DEEP = object()


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant: {name}")


def _parse(raw: bytes) -> Any:
    """Parse *raw* as strict JSON.

    Returns the document, ``_TOO_DEEP`` if the decoder ran out of stack, or
    raises ``ValueError`` for anything that is not JSON.
    """
    try:
        return json.loads(raw.decode("utf-8"), parse_constant=_reject_constant)
    except RecursionError:
        return _TOO_DEEP


def _depth(value: Any) -> int:
    deepest = 0
    stack: list[tuple[Any, int]] = [(value, 1)]
    while stack:
        node, level = stack.pop()
        if isinstance(node, dict):
            children: Any = node.values()
        elif isinstance(node, list):
            children = node
        else:
            continue
        deepest = max(deepest, level)
        stack.extend((child, level + 1) for child in children)
    return deepest


def _kind(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"


class _Comparison:
    """Single-use walker accumulating the explanation and status flags."""

    def __init__(self, markers: DiffMarkers) -> None:
        self._markers = markers
        self.no_match = False
        self.superset = False

    def render(self, value: Any, level: int) -> str:
        indent = self._markers.indent
        if isinstance(value, dict):
            if not value:
                return "{}"
            inner = indent * (level + 1)
            lines = [
                f"{inner}{json.dumps(key, ensure_ascii=False)}: {self.render(value[key], level + 1)}"
                for key in sorted(value)
            ]
            return "{\n" + ",\n".join(lines) + "\n" + indent * level + "}"
        if isinstance(value, list):
            if not value:
                return "[]"
            inner = indent * (level + 1)
            lines = [f"{inner}{self.render(item, level + 1)}" for item in value]
            return "[\n" + ",\n".join(lines) + "\n" + indent * level + "]"
        return json.dumps(value, ensure_ascii=False)

    def diff(self, a: Any, b: Any, level: int) -> str:
        kind = _kind(a)
        if kind == _kind(b):
            if kind == "object":
                return self._diff_object(a, b, level)
            if kind == "array":
                return self._diff_array(a, b, level)
            if a == b:
                return self.render(a, level)
        return self._changed(a, b, level)

    def _changed(self, a: Any, b: Any, level: int) -> str:
        m = self._markers
        self.no_match = True
        return f"{m.changed_begin}{self.render(a, level)}{m.changed_separator}{self.render(b, level)}{m.changed_end}"

    def _added(self, text: str) -> str:
        self.superset = True
        return f"{self._markers.added_begin}{text}{self._markers.added_end}"

    def _removed(self, text: str) -> str:
        self.no_match = True
        return f"{self._markers.removed_begin}{text}{self._markers.removed_end}"

    def _diff_object(self, a: dict[str, Any], b: dict[str, Any], level: int) -> str:
        keys = sorted(set(a) | set(b))
        if not keys:
            return "{}"
        indent = self._markers.indent
        inner = indent * (level + 1)
        lines: list[str] = []
        for key in keys:
            label = f"{json.dumps(key, ensure_ascii=False)}: "
            if key in a and key in b:
                lines.append(inner + label + self.diff(a[key], b[key], level + 1))
            elif key in b:
                lines.append(inner + self._added(label + self.render(b[key], level + 1)))
            else:
                lines.append(inner + self._removed(label + self.render(a[key], level + 1)))
        return "{\n" + ",\n".join(lines) + "\n" + indent * level + "}"

    def _diff_array(self, a: list[Any], b: list[Any], level: int) -> str:
        longest = max(len(a), len(b))
        if longest == 0:
            return "[]"
        indent = self._markers.indent
        inner = indent * (level + 1)
        lines: list[str] = []
        for i in range(longest):
            if i < len(a) and i < len(b):
                lines.append(inner + self.diff(a[i], b[i], level + 1))
            elif i < len(b):
                lines.append(inner + self._added(self.render(b[i], level + 1)))
            else:
                lines.append(inner + self._removed(self.render(a[i], level + 1)))
        return "[\n" + ",\n".join(lines) + "\n" + indent * level + "]"

    @property
    def status(self) -> DiffStatus:
        if self.no_match:
            return DiffStatus.NO_MATCH
        if self.superset:
            return DiffStatus.SUPERSET_MATCH
        return DiffStatus.FULL_MATCH


class JSONDiffEngine:
    """Loads and compares JSON snapshot documents.

    Parameters
    ----------
    markers:
        Annotation strings for differing fields.  Defaults to
        :meth:`DiffMarkers.plain`.
    max_depth:
        Deepest container nesting accepted; deeper documents yield
        ``DiffStatus.INVALID``.
    """

    def __init__(self, markers: DiffMarkers | None = None, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        self._markers = markers or DiffMarkers.plain()
        self._max_depth = max_depth

    def compare(self, location_a: str | Path, location_b: str | Path) -> DiffResult:
        """Read two stored snapshots and compare them.

        Raises
        ------
        ReadFailedError
            If either location cannot be read.  The message never contains
            the location itself.
        """
        raw_a = self._read(location_a, "first")
        raw_b = self._read(location_b, "second")
        return self.compare_documents(raw_a, raw_b)

    @staticmethod
    def _read(location: str | Path, which: str) -> bytes:
        try:
            return Path(location).read_bytes()
        except OSError as exc:
            logger.debug("Read of %s snapshot failed at %s", which, location, exc_info=True)
            raise ReadFailedError(f"failed to read contents of {which} snapshot: {describe_failure(exc)}") from exc

    def compare_documents(self, raw_a: bytes, raw_b: bytes) -> DiffResult:
        """Compare two raw JSON documents."""
        doc_a, valid_a = self._try_parse(raw_a)
        doc_b, valid_b = self._try_parse(raw_b)
        if not valid_a and not valid_b:
            return DiffResult(status=DiffStatus.BOTH_ARGS_ARE_INVALID_JSON)
        if not valid_a:
            return DiffResult(status=DiffStatus.FIRST_ARG_IS_INVALID_JSON)
        if not valid_b:
            return DiffResult(status=DiffStatus.SECOND_ARG_IS_INVALID_JSON)

        if any(doc is _TOO_DEEP or _depth(doc) > self._max_depth for doc in (doc_a, doc_b)):
            logger.warning("Rejecting comparison: document nesting exceeds %d levels", self._max_depth)
            return DiffResult(status=DiffStatus.INVALID)

        walker = _Comparison(self._markers)
        explanation = walker.diff(doc_a, doc_b, 0)
        return DiffResult(status=walker.status, explanation=explanation)

    @staticmethod
    def _try_parse(raw: bytes) -> tuple[Any, bool]:
        try:
            return _parse(raw), True
        except ValueError:
            return None, False
