"""Cell-value coercion shared by every aggregate.

A cell arrives as ``None`` (absent), ``str`` or UTF-8 ``bytes``.  Absent,
undecodable and blank cells are skipped everywhere; what remains is either
numeric text or other content.
"""

from __future__ import annotations

import math
import re
from typing import Iterable, Iterator

# Plain decimal literal: optional sign, integer and/or fraction, optional exponent.
_NUMBER_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)


def cell_text(value: str | bytes | None) -> str | None:
    """Return the trimmed text of a cell, or ``None`` if it should be skipped."""
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        try:
            value = bytes(value).decode("utf-8")
        except UnicodeDecodeError:
            return None
    text = value.strip()
    if not text:
        return None
    return text


def parse_number(text: str) -> float | None:
    """Parse already-trimmed *text* as a finite float, or return ``None``.

    ``inf``/``nan`` spellings, hex and underscore-grouped digits are not
    numbers here, and neither is a literal that overflows to infinity.
    """
    if _NUMBER_RE.fullmatch(text) is None:
        return None
    num = float(text)
    if math.isinf(num):
        return None
    return num


def to_number(value: str | bytes | None) -> float | None:
    """Coerce one cell to a float, ``None`` when it is absent, blank or non-numeric."""
    text = cell_text(value)
    if text is None:
        return None
    return parse_number(text)


def numeric_values(values: Iterable[str | bytes | None]) -> Iterator[float]:
    """Yield the numeric cells of *values* in input order, skipping everything else."""
    for value in values:
        num = to_number(value)
        if num is not None:
            yield num


def present_values(values: Iterable[str | bytes | None]) -> Iterator[str]:
    """Yield the trimmed text of every non-absent, non-blank cell."""
    for value in values:
        text = cell_text(value)
        if text is not None:
            yield text
