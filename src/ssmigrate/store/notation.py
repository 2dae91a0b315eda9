"""
A1 notation helpers.
"""


def column_to_letter(index: int) -> str:
    """Convert a 0-based column index to letters (0 -> A, 26 -> AA)."""
    if index < 0:
        raise ValueError(f"Column index must be non-negative, got {index}")

    result = ""
    while index >= 0:
        result = chr(ord("A") + index % 26) + result
        index = index // 26 - 1
    return result


def letter_to_column(letter: str) -> int:
    """Convert column letters to a 0-based index (A -> 0, AA -> 26)."""
    if not letter or not letter.isalpha():
        raise ValueError(f"Invalid column letter: {letter!r}")

    result = 0
    for ch in letter.upper():
        result = result * 26 + (ord(ch) - ord("A") + 1)
    return result - 1


def quote_sheet_name(sheet_name: str) -> str:
    """Quote a sheet title for use in a range."""
    return "'" + sheet_name.replace("'", "''") + "'"


def cell_range(sheet_name: str, column_ref: str, row_ref: int) -> str:
    return f"{quote_sheet_name(sheet_name)}!{column_ref}{row_ref}"


def row_range(sheet_name: str, row: int) -> str:
    return f"{quote_sheet_name(sheet_name)}!{row}:{row}"


def column_range(sheet_name: str, column_ref: str, start_row: int, end_row: int = 0) -> str:
    """Range covering one column from ``start_row`` (to ``end_row`` when given)."""
    end = f"{column_ref}{end_row}" if end_row else column_ref
    return f"{quote_sheet_name(sheet_name)}!{column_ref}{start_row}:{end}"
