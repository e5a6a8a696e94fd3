"""Error types for formula parsing and column aggregation."""

from __future__ import annotations


class FormulaError(Exception):
    """Base class for all formula-related errors.

    Attributes:
        code: Stable machine-readable error kind.
    """

    code = "formula_error"


class NullInputError(FormulaError):
    """A required input (formula, column name or value sequence) is absent."""

    code = "null_input"

    def __init__(self, what: str = "input") -> None:
        self.what = what
        super().__init__(f"Null {what} provided")


class InvalidEncodingError(FormulaError):
    """A formula or column name is not valid UTF-8 text."""

    code = "invalid_encoding"

    def __init__(self, what: str = "input") -> None:
        self.what = what
        super().__init__(f"Invalid {what} encoding")


class FormulaParseError(FormulaError):
    """Syntax error in a formula string.

    Attributes:
        position: Character position where the error was detected.
        message: Human-readable description.
    """

    code = "parse_error"

    def __init__(self, message: str, position: int | None = None) -> None:
        self.position = position
        self.message = message
        full = f"Formula parse error: {message}"
        if position is not None:
            full += f" (at position {position})"
        super().__init__(full)


class MissingLeadingEqualsError(FormulaParseError):
    code = "missing_leading_equals"

    def __init__(self) -> None:
        super().__init__("Formula must start with '='", position=0)


class MissingOpenParenError(FormulaParseError):
    code = "missing_open_paren"

    def __init__(self) -> None:
        super().__init__("expected function(arg), no '(' found")


class MissingCloseParenError(FormulaParseError):
    code = "missing_close_paren"

    def __init__(self, position: int | None = None) -> None:
        super().__init__("Formula missing closing parenthesis", position=position)


class NoNumericValuesError(FormulaError):
    """SUM/AVG/MIN/MAX found nothing numeric after filtering.

    Attributes:
        func_name: The aggregate that had nothing to reduce.
    """

    code = "no_numeric_values"

    def __init__(self, func_name: str) -> None:
        self.func_name = func_name
        super().__init__(f"{func_name}: no numeric values found in column")


class FormulaRefError(FormulaError):
    """Reference to an unknown column.

    Attributes:
        ref_name: The unresolved column name.
        available: Column names that are currently available.
    """

    code = "column_not_found"

    def __init__(self, ref_name: str, available: list[str] | None = None) -> None:
        self.ref_name = ref_name
        self.available = available or []
        msg = f"Column {ref_name!r} not found"
        if self.available:
            msg += f". Available: {self.available}"
        super().__init__(msg)


class FormulaFunctionError(FormulaError):
    """Function name that maps to no aggregate.

    Attributes:
        func_name: The function that caused the error.
    """

    code = "unknown_function"

    def __init__(self, func_name: str, message: str | None = None) -> None:
        self.func_name = func_name
        msg = message or f"Unknown function: {func_name!r}"
        super().__init__(msg)


# Every per-call failure a host may need to catch and report.
ENGINE_ERRORS: tuple[type[FormulaError], ...] = (
    NullInputError,
    InvalidEncodingError,
    FormulaParseError,
    NoNumericValuesError,
    FormulaRefError,
    FormulaFunctionError,
)
