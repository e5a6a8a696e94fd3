"""Host-side column model: text tables loaded from CSV with Polars."""

from __future__ import annotations

from pathlib import Path

import polars as pl

from tessera.formulas.errors import FormulaRefError


def detect_delimiter(sample: str) -> str:
    """Pick ``;`` when it outnumbers ``,`` in *sample*, else ``,``."""
    return ";" if sample.count(";") > sample.count(",") else ","


def load_csv(path: Path | str, delimiter: str | None = None) -> pl.DataFrame:
    """Load a CSV file as an all-text DataFrame.

    Every column is read as ``pl.Utf8`` with no type inference.  Cells are
    trimmed and blank cells become null.  Fully blank lines are dropped.

    Args:
        path: CSV file path.
        delimiter: Field separator; detected from the header line when None.

    Returns:
        The loaded table (empty when the file holds no non-blank line).
    """
    path = Path(path)
    lines = [
        line for line in path.read_text(encoding="utf-8-sig").splitlines()
        if line.strip()
    ]
    if not lines:
        return pl.DataFrame()

    sep = delimiter or detect_delimiter(lines[0])
    df = pl.read_csv(
        "\n".join(lines).encode("utf-8"),
        separator=sep,
        infer_schema_length=0,
        truncate_ragged_lines=True,
    )
    return df.with_columns([_blank_to_null(name) for name in df.columns])


def _blank_to_null(name: str) -> pl.Expr:
    stripped = pl.col(name).str.strip_chars()
    return pl.when(stripped == "").then(None).otherwise(stripped).alias(name)


def resolve_column(df: pl.DataFrame, name: str) -> str:
    """Return the actual column name matching *name* case-insensitively.

    Raises:
        FormulaRefError: If no column matches.
    """
    wanted = name.strip().casefold()
    for col in df.columns:
        if col.strip().casefold() == wanted:
            return col
    raise FormulaRefError(name, available=list(df.columns))


def column_values(df: pl.DataFrame, name: str) -> list[str | None]:
    """Return the raw cells of the column named *name* (case-insensitive)."""
    return df.get_column(resolve_column(df, name)).to_list()
