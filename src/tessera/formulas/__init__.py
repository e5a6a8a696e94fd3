"""Column formula parsing and tolerant aggregation.

Public API::

    from tessera.formulas import parse_formula, aggregate, AggregateKind
"""

from tessera.formulas.aggregate import (
    AggregateKind,
    aggregate,
    aggregate_avg,
    aggregate_count,
    aggregate_max,
    aggregate_min,
    aggregate_sum,
)
from tessera.formulas.coerce import to_number
from tessera.formulas.errors import (
    ENGINE_ERRORS,
    FormulaError,
    FormulaFunctionError,
    FormulaParseError,
    FormulaRefError,
    InvalidEncodingError,
    MissingCloseParenError,
    MissingLeadingEqualsError,
    MissingOpenParenError,
    NoNumericValuesError,
    NullInputError,
)
from tessera.formulas.parser import ParsedFormula, parse_formula

__all__ = [
    "ENGINE_ERRORS",
    "AggregateKind",
    "FormulaError",
    "FormulaFunctionError",
    "FormulaParseError",
    "FormulaRefError",
    "InvalidEncodingError",
    "MissingCloseParenError",
    "MissingLeadingEqualsError",
    "MissingOpenParenError",
    "NoNumericValuesError",
    "NullInputError",
    "ParsedFormula",
    "aggregate",
    "aggregate_avg",
    "aggregate_count",
    "aggregate_max",
    "aggregate_min",
    "aggregate_sum",
    "parse_formula",
    "to_number",
]
