"""Parser for single-call column formulas of the shape ``=FUNC(ARG)``.

Only the first ``(`` and the final ``)`` delimit the argument.  Anything
between them, nested parentheses included, is kept verbatim as one opaque
argument string; giving it meaning (usually a column name) is up to the
caller.  Function names are case-folded to uppercase and are not checked
against any list of known aggregates.
"""

from __future__ import annotations

from dataclasses import dataclass

from tessera.formulas.errors import (
    InvalidEncodingError,
    MissingCloseParenError,
    MissingLeadingEqualsError,
    MissingOpenParenError,
    NullInputError,
)


@dataclass(frozen=True)
class ParsedFormula:
    """Function name (uppercased) and raw trimmed argument of a formula."""

    function_name: str
    argument: str

    def to_wire(self) -> str:
        """Render as ``FUNCTION:ARGUMENT``, the text form used across the native boundary."""
        return f"{self.function_name}:{self.argument}"


def _as_text(formula: str | bytes | None) -> str:
    if formula is None:
        raise NullInputError("formula string")
    if isinstance(formula, (bytes, bytearray)):
        try:
            return bytes(formula).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise InvalidEncodingError("formula") from exc
    return formula


def parse_formula(formula: str | bytes | None) -> ParsedFormula:
    """Split a formula string into its function name and argument.

    Args:
        formula: The formula text, e.g. ``"=SUM(ColumnA)"``.  ``bytes``
            are decoded as UTF-8.

    Returns:
        A ``ParsedFormula``.

    Raises:
        NullInputError: If *formula* is ``None``.
        InvalidEncodingError: If *formula* is bytes that are not UTF-8.
        MissingLeadingEqualsError: If the trimmed text does not start with ``=``.
        MissingOpenParenError: If there is no ``(`` after the ``=``.
        MissingCloseParenError: If the text does not end with ``)``.
    """
    text = _as_text(formula).strip()
    if not text.startswith("="):
        raise MissingLeadingEqualsError()

    body = text[1:].strip()
    open_idx = body.find("(")
    if open_idx < 0:
        raise MissingOpenParenError()

    function_name = body[:open_idx].strip().upper()

    if not body.endswith(")"):
        raise MissingCloseParenError(position=len(text))

    argument = body[open_idx + 1:-1].strip()
    return ParsedFormula(function_name=function_name, argument=argument)
