"""Tolerant column aggregates: SUM, AVG, MIN, MAX and COUNT.

Every aggregate takes a sequence of raw cells (``None``, ``str`` or UTF-8
``bytes``).  SUM/AVG/MIN/MAX reduce only the cells that parse as numbers
and raise ``NoNumericValuesError`` when none do.  COUNT counts every cell
with content, numeric or not, and never fails.

Sums run left to right in input order with plain float addition.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable

from tessera.formulas.coerce import numeric_values, present_values
from tessera.formulas.errors import FormulaFunctionError, NoNumericValuesError
from tessera.functions.registry import get_aggregate_fn, register_aggregate


class AggregateKind(str, Enum):
    SUM = "SUM"
    AVG = "AVG"
    MIN = "MIN"
    MAX = "MAX"
    COUNT = "COUNT"

    @classmethod
    def from_name(cls, name: str) -> AggregateKind:
        """Map a function name (any case) to an aggregate kind.

        Raises:
            FormulaFunctionError: If *name* is not one of the five aggregates.
        """
        try:
            return cls(name.strip().upper())
        except ValueError:
            raise FormulaFunctionError(name) from None


@register_aggregate("SUM")
def aggregate_sum(values: Iterable[str | bytes | None]) -> float:
    total = 0.0
    parsed = 0
    for num in numeric_values(values):
        total += num
        parsed += 1
    if parsed == 0:
        raise NoNumericValuesError("SUM")
    return total


@register_aggregate("AVG")
def aggregate_avg(values: Iterable[str | bytes | None]) -> float:
    """Mean over the numeric cells only; skipped cells are not in the denominator."""
    total = 0.0
    parsed = 0
    for num in numeric_values(values):
        total += num
        parsed += 1
    if parsed == 0:
        raise NoNumericValuesError("AVG")
    return total / parsed


@register_aggregate("MIN")
def aggregate_min(values: Iterable[str | bytes | None]) -> float:
    current: float | None = None
    for num in numeric_values(values):
        if current is None or num < current:
            current = num
    if current is None:
        raise NoNumericValuesError("MIN")
    return current


@register_aggregate("MAX")
def aggregate_max(values: Iterable[str | bytes | None]) -> float:
    current: float | None = None
    for num in numeric_values(values):
        if current is None or num > current:
            current = num
    if current is None:
        raise NoNumericValuesError("MAX")
    return current


@register_aggregate("COUNT")
def aggregate_count(values: Iterable[str | bytes | None]) -> float:
    """Number of cells with content; zero is a valid answer."""
    return float(sum(1 for _ in present_values(values)))


def aggregate(kind: AggregateKind | str, values: Iterable[str | bytes | None]) -> float:
    """Apply one aggregate to a column of raw cells.

    Args:
        kind: An ``AggregateKind`` or a function name such as ``"sum"``.
        values: Raw cell values, consumed once and never modified.

    Returns:
        The aggregate as a float.

    Raises:
        FormulaFunctionError: If *kind* names no aggregate.
        NoNumericValuesError: If SUM/AVG/MIN/MAX find no numeric cell.
    """
    if not isinstance(kind, AggregateKind):
        kind = AggregateKind.from_name(kind)
    return get_aggregate_fn(kind.value)(values)
