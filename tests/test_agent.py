"""Tests for the host-side table loader and per-cell formula agent."""

from __future__ import annotations

from pathlib import Path

import polars as pl
import pytest

from tessera.agent import CellOutcome, FormulaAgent, format_result
from tessera.formulas import AggregateKind, FormulaRefError, MissingLeadingEqualsError
from tessera.table import column_values, detect_delimiter, load_csv, resolve_column


@pytest.fixture
def table() -> pl.DataFrame:
    return pl.DataFrame(
        {
            "Name": ["a", "b", "c", "d", "e"],
            "Amount": ["10", "20", None, "abc", "30"],
            "Price": ["1.5", "2", "", None, "x"],
            "Notes": [None, "", "  ", None, None],
        }
    )


@pytest.fixture
def agent() -> FormulaAgent:
    return FormulaAgent()


# ---------------------------------------------------------------------------
# Table loading and column resolution
# ---------------------------------------------------------------------------


class TestTable:
    def test_detect_delimiter(self) -> None:
        assert detect_delimiter("a;b;c") == ";"
        assert detect_delimiter("a,b;c,d") == ","
        assert detect_delimiter("single") == ","

    def test_load_csv_all_text(self, tmp_path: Path) -> None:
        path = tmp_path / "data.csv"
        path.write_text("Name,Amount\nA, 10 \nB,\n\nC,abc\nD,2.5\n")
        df = load_csv(path)
        assert df.columns == ["Name", "Amount"]
        assert df.schema["Amount"] == pl.Utf8
        assert df.get_column("Amount").to_list() == ["10", None, "abc", "2.5"]

    def test_load_csv_semicolon(self, tmp_path: Path) -> None:
        path = tmp_path / "data.csv"
        path.write_text("Name;Amount\nA;1\nB;2\n")
        df = load_csv(path)
        assert df.get_column("Amount").to_list() == ["1", "2"]

    def test_load_csv_explicit_delimiter(self, tmp_path: Path) -> None:
        path = tmp_path / "data.csv"
        path.write_text("Name|Amount\nA|7\n")
        assert load_csv(path, delimiter="|").get_column("Amount").to_list() == ["7"]

    def test_load_empty_csv(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.csv"
        path.write_text("\n  \n")
        assert load_csv(path).is_empty()

    def test_resolve_column_case_insensitive(self, table: pl.DataFrame) -> None:
        assert resolve_column(table, "amount") == "Amount"
        assert resolve_column(table, " PRICE ") == "Price"

    def test_resolve_column_missing(self, table: pl.DataFrame) -> None:
        with pytest.raises(FormulaRefError, match="Nope") as info:
            resolve_column(table, "Nope")
        assert "Amount" in info.value.available

    def test_column_values(self, table: pl.DataFrame) -> None:
        assert column_values(table, "amount") == ["10", "20", None, "abc", "30"]


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


class TestFormatResult:
    def test_integral(self) -> None:
        assert format_result(60.0, AggregateKind.SUM) == "60"
        assert format_result(-4.0, AggregateKind.MIN) == "-4"

    def test_fractional(self) -> None:
        assert format_result(3.5, AggregateKind.SUM) == "3.5"
        assert format_result(0.1 + 0.2, AggregateKind.SUM) == "0.30000000000000004"

    def test_integer_results_off(self) -> None:
        assert format_result(60.0, AggregateKind.SUM, integer_results=False) == "60.0"

    def test_count_always_integer(self) -> None:
        assert format_result(3.0, AggregateKind.COUNT, integer_results=False) == "3"

    def test_huge_values_keep_float_form(self) -> None:
        assert format_result(1e300, AggregateKind.MAX) == "1e+300"


# ---------------------------------------------------------------------------
# Formula store
# ---------------------------------------------------------------------------


class TestFormulaStore:
    def test_set_and_get(self, agent: FormulaAgent) -> None:
        agent.set_formula(0, 4, "  =SUM(Amount) ")
        assert agent.has_formula(0, 4)
        assert agent.get_formula(0, 4) == "=SUM(Amount)"
        assert agent.all_formulas() == {(0, 4): "=SUM(Amount)"}

    def test_blank_clears(self, agent: FormulaAgent) -> None:
        agent.set_formula(0, 4, "=SUM(Amount)")
        agent.set_formula(0, 4, "   ")
        assert not agent.has_formula(0, 4)
        agent.set_formula(1, 1, "=MAX(Amount)")
        agent.set_formula(1, 1, None)
        assert agent.get_formula(1, 1) is None

    def test_requires_leading_equals(self, agent: FormulaAgent) -> None:
        with pytest.raises(MissingLeadingEqualsError):
            agent.set_formula(0, 0, "SUM(Amount)")

    def test_clear_and_clear_all(self, agent: FormulaAgent) -> None:
        agent.set_formula(0, 0, "=SUM(Amount)")
        agent.set_formula(0, 1, "=COUNT(Name)")
        agent.clear_formula(0, 0)
        assert agent.all_formulas() == {(0, 1): "=COUNT(Name)"}
        agent.clear_all()
        assert agent.all_formulas() == {}


# ---------------------------------------------------------------------------
# Calculation
# ---------------------------------------------------------------------------


class TestCalculate:
    @pytest.mark.parametrize(
        "formula, expected",
        [
            ("=SUM(Amount)", "60"),
            ("=avg(amount)", "20"),
            ("=MIN(Amount)", "10"),
            ("=MAX(Amount)", "30"),
            ("=COUNT(Amount)", "4"),
            ("=SUM(Price)", "3.5"),
            ("=COUNT(Notes)", "0"),
        ],
    )
    def test_functions(self, agent: FormulaAgent, table: pl.DataFrame, formula: str, expected: str) -> None:
        agent.set_formula(0, 9, formula)
        outcome = agent.calculate(0, 9, table)
        assert outcome == CellOutcome(result=expected)
        assert outcome.ok
        assert outcome.text == expected

    def test_no_numeric_values(self, agent: FormulaAgent, table: pl.DataFrame) -> None:
        agent.set_formula(0, 9, "=SUM(Notes)")
        outcome = agent.calculate(0, 9, table)
        assert outcome.result is None
        assert "no numeric values" in outcome.error

    def test_unknown_function(self, agent: FormulaAgent, table: pl.DataFrame) -> None:
        agent.set_formula(0, 9, "=MEDIAN(Amount)")
        assert "Unknown function" in agent.calculate(0, 9, table).error

    def test_unknown_column(self, agent: FormulaAgent, table: pl.DataFrame) -> None:
        agent.set_formula(0, 9, "=SUM(Missing)")
        assert "not found" in agent.calculate(0, 9, table).error

    def test_parse_error(self, agent: FormulaAgent, table: pl.DataFrame) -> None:
        agent.set_formula(0, 9, "=SUM(Amount")
        assert "closing parenthesis" in agent.calculate(0, 9, table).error

    def test_no_formula(self, agent: FormulaAgent, table: pl.DataFrame) -> None:
        assert agent.calculate(3, 3, table) == CellOutcome(error="No formula found for cell")

    def test_calculate_formula_unstored(self, agent: FormulaAgent, table: pl.DataFrame) -> None:
        assert agent.calculate_formula("=MAX(Price)", table).result == "2"
        assert "must start with" in agent.calculate_formula("MAX(Price)", table).error
        assert agent.all_formulas() == {}

    def test_integer_results_off(self, table: pl.DataFrame) -> None:
        agent = FormulaAgent(integer_results=False)
        assert agent.calculate_formula("=SUM(Amount)", table).result == "60.0"


# ---------------------------------------------------------------------------
# Recalculation
# ---------------------------------------------------------------------------


class TestRecalculate:
    def test_recalculate_all(self, agent: FormulaAgent, table: pl.DataFrame) -> None:
        agent.set_formula(0, 5, "=SUM(Amount)")
        agent.set_formula(1, 5, "=SUM(Nope)")
        results = agent.recalculate_all(table)
        assert results[(0, 5)] == "60"
        assert "not found" in results[(1, 5)]

    def test_recalculate_dependents(self, agent: FormulaAgent, table: pl.DataFrame) -> None:
        agent.set_formula(0, 5, "=SUM(Amount)")
        agent.set_formula(1, 5, "=COUNT(amount)")
        agent.set_formula(2, 5, "=COUNT(Name)")
        seen: list[tuple[tuple[int, int], str]] = []
        agent.subscribe(lambda cell, text: seen.append((cell, text)))

        amount_col = table.columns.index("Amount")
        results = agent.recalculate_dependents(amount_col, table)

        assert results == {(0, 5): "60", (1, 5): "4"}
        assert seen == [((0, 5), "60"), ((1, 5), "4")]

    def test_recalculate_dependents_after_edit(self, agent: FormulaAgent, table: pl.DataFrame) -> None:
        agent.set_formula(0, 5, "=MAX(Amount)")
        edited = table.with_columns(pl.Series("Amount", ["10", "20", "99", "abc", "30"]))
        assert agent.recalculate_dependents(1, edited) == {(0, 5): "99"}

    def test_recalculate_dependents_out_of_range(self, agent: FormulaAgent, table: pl.DataFrame) -> None:
        agent.set_formula(0, 5, "=SUM(Amount)")
        assert agent.recalculate_dependents(42, table) == {}
