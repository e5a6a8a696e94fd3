"""Flat call boundary for hosts that cannot receive Python exceptions.

Each call returns a plain record: a numeric value plus an optional error
handle, or the two parsed fields plus an optional error handle.  Error
text lives in a ``StringTable`` until the caller releases it with
``tessera_free_string``.  Nothing here raises across the boundary.
"""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass
from typing import Sequence

from tessera.formulas.aggregate import AggregateKind, aggregate
from tessera.formulas.errors import ENGINE_ERRORS, FormulaError
from tessera.formulas.parser import parse_formula


class StringTable:
    """Caller-releasable strings addressed by integer handles.

    Handles start at 1 and are never reused, so releasing the same handle
    twice (or releasing ``None``/``0``) does nothing.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._strings: dict[int, str] = {}
        self._ids = itertools.count(1)

    def alloc(self, text: str) -> int:
        with self._lock:
            handle = next(self._ids)
            self._strings[handle] = text
        return handle

    def read(self, handle: int) -> str:
        """Return the text behind a live handle.

        Raises:
            KeyError: If *handle* was never issued or is already released.
        """
        with self._lock:
            if handle not in self._strings:
                raise KeyError(f"Unknown or released string handle: {handle!r}")
            return self._strings[handle]

    def release(self, handle: int | None) -> None:
        if not handle:
            return
        with self._lock:
            self._strings.pop(handle, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._strings)


_strings = StringTable()


def _table(table: StringTable | None) -> StringTable:
    return _strings if table is None else table


@dataclass(frozen=True)
class FormulaResult:
    """Aggregate outcome; ``value`` is meaningful only when ``error`` is None."""

    value: float
    error: int | None = None


@dataclass(frozen=True)
class ParseResult:
    """Parsed formula fields, or an error handle with both fields None."""

    function_name: str | None
    argument: str | None
    error: int | None = None


def _error_message(exc: FormulaError) -> str:
    # Parse errors travel with their bare reason, not the "Formula parse error:" prefix.
    return getattr(exc, "message", None) or str(exc)


def _error_result(message: str, table: StringTable) -> FormulaResult:
    return FormulaResult(value=0.0, error=table.alloc(message))


def tessera_free_string(handle: int | None, table: StringTable | None = None) -> None:
    """Release a string handle returned by any call in this module."""
    _table(table).release(handle)


def read_string(handle: int, table: StringTable | None = None) -> str:
    return _table(table).read(handle)


def tessera_parse_formula(
    formula: str | bytes | None, table: StringTable | None = None
) -> ParseResult:
    """Parse *formula*; errors come back as a releasable handle."""
    table = _table(table)
    try:
        parsed = parse_formula(formula)
    except ENGINE_ERRORS as exc:
        return ParseResult(None, None, error=table.alloc(_error_message(exc)))
    return ParseResult(parsed.function_name, parsed.argument)


def tessera_aggregate(
    kind: AggregateKind | str,
    column_name: str | bytes | None,
    values: Sequence[str | bytes | None] | None,
    count: int,
    table: StringTable | None = None,
) -> FormulaResult:
    """Aggregate the first *count* entries of *values*.

    The column name is validated but otherwise unused.  Absent or
    undecodable entries are skipped; an absent or undecodable column name
    and an absent value sequence fail the whole call.
    """
    table = _table(table)
    if column_name is None or values is None:
        return _error_result("Null pointer provided", table)
    if isinstance(column_name, (bytes, bytearray)):
        try:
            bytes(column_name).decode("utf-8")
        except UnicodeDecodeError:
            return _error_result("Invalid column name encoding", table)

    try:
        value = aggregate(kind, values[:max(count, 0)])
    except ENGINE_ERRORS as exc:
        return _error_result(_error_message(exc), table)
    return FormulaResult(value=value)


def tessera_sum(column_name, values, count, table: StringTable | None = None) -> FormulaResult:
    return tessera_aggregate(AggregateKind.SUM, column_name, values, count, table)


def tessera_avg(column_name, values, count, table: StringTable | None = None) -> FormulaResult:
    return tessera_aggregate(AggregateKind.AVG, column_name, values, count, table)


def tessera_min(column_name, values, count, table: StringTable | None = None) -> FormulaResult:
    return tessera_aggregate(AggregateKind.MIN, column_name, values, count, table)


def tessera_max(column_name, values, count, table: StringTable | None = None) -> FormulaResult:
    return tessera_aggregate(AggregateKind.MAX, column_name, values, count, table)


def tessera_count(column_name, values, count, table: StringTable | None = None) -> FormulaResult:
    return tessera_aggregate(AggregateKind.COUNT, column_name, values, count, table)
