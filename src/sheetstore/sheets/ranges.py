"""A1 range addressing for row-oriented sheet access.

Rows are 1-based and always span the fixed column window A..Z.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

FIRST_COLUMN = "A"
LAST_COLUMN = "Z"

# Start address such as "A5" in "cars!A5:D5"
_START_ROW_RE = re.compile(r"^\$?[A-Z]+\$?(?P<row>\d+)")


def _check_row(row: int) -> int:
    if isinstance(row, bool) or not isinstance(row, int):
        raise ValueError(f"Row number must be an integer, got {row!r}")
    if row < 1:
        raise ValueError(f"Row number must be >= 1, got {row}")
    return row


@dataclass(frozen=True)
class SheetRange:
    """Every row of a sheet, columns A..Z."""

    sheet_name: str

    @property
    def anchor(self) -> str:
        """Append anchor, the first cell of the sheet."""
        return f"{self.sheet_name}!{FIRST_COLUMN}1"

    def row(self, row: int) -> RowRange:
        return RowRange(self.sheet_name, row)

    def __str__(self) -> str:
        return f"{self.sheet_name}!{FIRST_COLUMN}:{LAST_COLUMN}"


@dataclass(frozen=True)
class RowRange:
    """A single row of a sheet, columns A..Z.

    >>> str(RowRange("cars", 3))
    'cars!A3:Z3'
    """

    sheet_name: str
    row: int

    def __post_init__(self):
        _check_row(self.row)

    def __str__(self) -> str:
        return f"{self.sheet_name}!{FIRST_COLUMN}{self.row}:{LAST_COLUMN}{self.row}"


def parse_start_row(range_notation: str) -> int:
    """Return the row number of the start address of an A1 range.

    >>> parse_start_row("cars!A5:D5")
    5

    Raises:
        ValueError: If the range has no sheet-qualified start row.
    """
    _, sep, cells = range_notation.rpartition("!")
    match = _START_ROW_RE.match(cells) if sep else None
    if not match:
        raise ValueError(f"No start row in range: {range_notation!r}")
    return int(match.group("row"))
