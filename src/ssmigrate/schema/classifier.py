"""
Column type classification.

Infers a column's semantic type from sampled cell values, or from the
number-format pattern applied to its cells.
"""

import re
from datetime import datetime
from typing import Any, Iterable, Optional

from .models import FieldType


# Matched against the trimmed value; a match marks the value as a datetime.
DATETIME_PATTERNS = [
    re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}"),  # 2006-01-02T15:04:05
    re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}"),  # 2006-01-02 15:04:05
    re.compile(r"^\d{4}-\d{2}-\d{2}$"),  # 2006-01-02
    re.compile(r"^\d{1,2}/\d{1,2}/\d{4}"),  # 1/2/2006
    re.compile(r"^\d{1,2}-\d{1,2}-\d{4}"),  # 1-2-2006
    re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}[+-]\d{2}:\d{2}"),
    re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z"),
]

# Fallback parse formats for shapes the patterns above do not cover.
DATETIME_FORMATS = [
    "%Y/%m/%d",
    "%Y-%m-%dT%H:%M:%S.%f%z",
]

DATE_ONLY_PATTERNS = [
    re.compile(r"^\d{4}-\d{2}-\d{2}$"),
    re.compile(r"^\d{1,2}/\d{1,2}/\d{4}$"),
    re.compile(r"^\d{1,2}-\d{1,2}-\d{4}$"),
    re.compile(r"^\d{4}/\d{2}/\d{2}$"),
]

NUMERIC_PATTERN = re.compile(r"^[+-]?\d*\.?\d*$")

INTEGER_FORMAT_PATTERNS = {"0", "#,##0", "#,###", "0.#####", "#.#####"}
DECIMAL_FORMAT_PATTERNS = {"0.00", "#,##0.00", "0.0", "#,##0.0"}
TEXT_FORMAT_PATTERN = "@"

DATE_TOKENS = ("yyyy", "yy", "mm", "dd")
TIME_TOKENS = ("hh", "ss")
CURRENCY_SYMBOLS = ("$", "¥", "€", "£")


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value).strip()


def is_datetime(value: str) -> bool:
    """Check whether a trimmed string looks like a date or datetime."""
    if not value:
        return False

    if any(pattern.match(value) for pattern in DATETIME_PATTERNS):
        return True

    for fmt in DATETIME_FORMATS:
        try:
            datetime.strptime(value, fmt)
            return True
        except ValueError:
            continue
    return False


def is_numeric(value: str) -> bool:
    """Check for an optionally signed number with at most one decimal point.

    Thousands separators are ignored.
    """
    stripped = value.replace(",", "")
    if not stripped or not NUMERIC_PATTERN.match(stripped):
        return False
    return any(ch.isdigit() for ch in stripped)


def classify_from_samples(values: Iterable[Any]) -> FieldType:
    """
    Infer a column type from sampled cell values.

    Nulls are skipped. A single value that is neither boolean, datetime nor
    numeric forces the column to ``string``.

    Args:
        values: Raw cell values for one column, in row order

    Returns:
        The inferred FieldType (``string`` when there is nothing to go on)
    """
    has_number = False
    has_string = False
    has_boolean = False
    has_datetime = False
    all_datetime = True
    has_decimal = False

    for value in values:
        if value is None:
            continue

        text = _stringify(value)
        if "." in text:
            has_decimal = True

        if text.lower() in ("true", "false"):
            has_boolean = True
            all_datetime = False
            continue

        looks_like_datetime = is_datetime(text)
        if looks_like_datetime:
            has_datetime = True
        else:
            all_datetime = False

        if is_numeric(text):
            has_number = True
        elif text and not looks_like_datetime:
            has_string = True

    if has_datetime and all_datetime:
        return FieldType.DATETIME
    if has_string:
        return FieldType.STRING
    if has_number:
        return FieldType.NUMBER if has_decimal else FieldType.INTEGER
    if has_boolean:
        return FieldType.BOOLEAN
    return FieldType.STRING


def _has_any(pattern: str, tokens: Iterable[str]) -> bool:
    lowered = pattern.lower()
    return any(token in lowered for token in tokens)


def classify_from_format_pattern(pattern: Optional[str]) -> Optional[FieldType]:
    """
    Map a spreadsheet number-format pattern to a column type.

    Returns ``None`` when the pattern is not recognised.
    """
    if not pattern:
        return None

    if pattern in INTEGER_FORMAT_PATTERNS:
        return FieldType.INTEGER
    if pattern in DECIMAL_FORMAT_PATTERNS:
        return FieldType.NUMBER
    if pattern == TEXT_FORMAT_PATTERN:
        return FieldType.STRING

    if _has_any(pattern, DATE_TOKENS + TIME_TOKENS):
        return FieldType.DATETIME

    if "%" in pattern or any(symbol in pattern for symbol in CURRENCY_SYMBOLS):
        return FieldType.NUMBER

    return None


def datetime_format_from_pattern(pattern: Optional[str]) -> str:
    """Translate a date/time pattern into ``default``, ``date`` or ``time``."""
    if not pattern:
        return ""

    has_date = _has_any(pattern, ("yyyy", "yy", "dd"))
    has_time = _has_any(pattern, TIME_TOKENS)
    if has_date and has_time:
        return "default"
    if has_time:
        return "time"
    if has_date or _has_any(pattern, ("mm",)):
        return "date"
    return ""


def datetime_format_from_samples(values: Iterable[Any]) -> str:
    """``date`` when every non-null sample is a bare date, else ``default``."""
    seen = False
    for value in values:
        if value is None:
            continue
        text = _stringify(value)
        if not text:
            continue
        seen = True
        if not any(p.match(text) for p in DATE_ONLY_PATTERNS):
            return "default"
    return "date" if seen else "default"
