"""Per-cell formula store and calculation for a text table.

The agent is where parser and aggregates are composed: it parses a cell's
formula, maps the function name to an aggregate, resolves the argument as
a column of the table, aggregates that column and renders the result as
cell text.  Failures come back as text in ``CellOutcome.error``.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any, Callable

import polars as pl

from tessera.formulas.aggregate import AggregateKind, aggregate
from tessera.formulas.errors import ENGINE_ERRORS, MissingLeadingEqualsError
from tessera.formulas.parser import parse_formula
from tessera.logging.events import (
    NO_FORMULA,
    EventType,
    emit_info,
    emit_warning,
)
from tessera.table import column_values

Cell = tuple[int, int]

# Integral floats beyond this are rendered with repr to stay exact.
_MAX_EXACT_INT = 2 ** 53


@dataclass(frozen=True)
class CellOutcome:
    """Rendered result text, or an error message.  Never both."""

    result: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def text(self) -> str:
        """What a grid would display in the cell."""
        return self.error if self.error is not None else (self.result or "")


def format_result(value: float, kind: AggregateKind, integer_results: bool = True) -> str:
    """Render an aggregate as cell text.

    COUNT is always an integer.  Other integral values drop the ``.0``
    when *integer_results* is set.
    """
    if kind is AggregateKind.COUNT:
        return str(int(value))
    if integer_results and value.is_integer() and abs(value) < _MAX_EXACT_INT:
        return str(int(value))
    return repr(value)


class FormulaAgent:
    """Tracks which cells hold formulas and calculates them against a table."""

    def __init__(self, *, integer_results: bool = True) -> None:
        self.integer_results = integer_results
        self._formulas: dict[Cell, str] = {}
        self._listeners: list[Callable[[Cell, str], Any]] = []

    # ------------------------------------------------------------------
    # Formula store
    # ------------------------------------------------------------------

    def set_formula(self, row: int, col: int, formula: str | None) -> None:
        """Store *formula* for a cell; blank text clears the cell.

        Raises:
            MissingLeadingEqualsError: If the text does not start with ``=``.
        """
        if formula is None or not formula.strip():
            self.clear_formula(row, col)
            return
        formula = formula.strip()
        if not formula.startswith("="):
            raise MissingLeadingEqualsError()
        self._formulas[(row, col)] = formula
        emit_info(
            EventType.formula_set,
            f"Formula set at ({row}, {col})",
            {"row": row, "col": col, "formula": formula},
        )

    def clear_formula(self, row: int, col: int) -> None:
        if self._formulas.pop((row, col), None) is not None:
            emit_info(
                EventType.formula_cleared,
                f"Formula cleared at ({row}, {col})",
                {"row": row, "col": col},
            )

    def get_formula(self, row: int, col: int) -> str | None:
        return self._formulas.get((row, col))

    def has_formula(self, row: int, col: int) -> bool:
        return (row, col) in self._formulas

    def all_formulas(self) -> dict[Cell, str]:
        return dict(self._formulas)

    def clear_all(self) -> None:
        self._formulas.clear()

    def subscribe(self, listener: Callable[[Cell, str], Any]) -> None:
        """Register a callback invoked as ``listener(cell, text)`` after recalculation."""
        self._listeners.append(listener)

    # ------------------------------------------------------------------
    # Calculation
    # ------------------------------------------------------------------

    def calculate(
        self, row: int, col: int, table: pl.DataFrame, *, calc_id: str | None = None
    ) -> CellOutcome:
        """Calculate the formula stored at ``(row, col)`` against *table*."""
        formula = self._formulas.get((row, col))
        if formula is None:
            emit_warning(
                EventType.formula_failed,
                "No formula found for cell",
                {"row": row, "col": col},
                error_code=NO_FORMULA,
                calc_id=calc_id,
            )
            return CellOutcome(error="No formula found for cell")

        return self._evaluate(formula, table, {"row": row, "col": col}, calc_id)

    def calculate_formula(self, formula: str, table: pl.DataFrame) -> CellOutcome:
        """Calculate a formula that is not stored in any cell."""
        return self._evaluate(formula, table, {}, None)

    def _evaluate(
        self,
        formula: str,
        table: pl.DataFrame,
        ctx: dict[str, Any],
        calc_id: str | None,
    ) -> CellOutcome:
        ctx = {**ctx, "formula": formula}
        try:
            parsed = parse_formula(formula)
            kind = AggregateKind.from_name(parsed.function_name)
            values = column_values(table, parsed.argument)
            value = aggregate(kind, values)
        except ENGINE_ERRORS as exc:
            emit_warning(
                EventType.formula_failed,
                str(exc),
                ctx,
                error_code=exc.code,
                calc_id=calc_id,
            )
            return CellOutcome(error=str(exc))

        text = format_result(value, kind, self.integer_results)
        emit_info(
            EventType.formula_calculated,
            f"{kind.value}({parsed.argument}) = {text}",
            {**ctx, "result": text},
            calc_id=calc_id,
        )
        return CellOutcome(result=text)

    def recalculate_dependents(self, changed_col: int, table: pl.DataFrame) -> dict[Cell, str]:
        """Recalculate every formula whose argument names column *changed_col*.

        Listeners are notified per recalculated cell.

        Returns:
            Mapping of cell to displayed text (result or error).
        """
        if changed_col < 0 or changed_col >= len(table.columns):
            return {}
        changed_name = table.columns[changed_col].strip().casefold()

        cells = []
        for cell, formula in self._formulas.items():
            try:
                argument = parse_formula(formula).argument
            except ENGINE_ERRORS:
                # Unparseable formulas are reported by calculate(), not tracked here.
                continue
            if argument.casefold() == changed_name:
                cells.append(cell)
        return self._recalculate(cells, table)

    def recalculate_all(self, table: pl.DataFrame) -> dict[Cell, str]:
        """Recalculate every stored formula."""
        return self._recalculate(list(self._formulas), table)

    def _recalculate(self, cells: list[Cell], table: pl.DataFrame) -> dict[Cell, str]:
        calc_id = uuid.uuid4().hex
        emit_info(
            EventType.recalc_started,
            f"Recalculating {len(cells)} formula cell(s)",
            {"calc_id": calc_id, "cells": len(cells)},
            calc_id=calc_id,
        )
        results: dict[Cell, str] = {}
        failed = 0
        for cell in sorted(cells):
            outcome = self.calculate(cell[0], cell[1], table, calc_id=calc_id)
            if not outcome.ok:
                failed += 1
            results[cell] = outcome.text
            for listener in self._listeners:
                listener(cell, outcome.text)
        emit_info(
            EventType.recalc_completed,
            f"Recalculated {len(results)} cell(s), {failed} failed",
            {"calc_id": calc_id, "cells": len(results), "failed": failed},
            calc_id=calc_id,
        )
        return results
