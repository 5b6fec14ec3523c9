
from __future__ import annotations

from typing import NamedTuple, Optional, Tuple

# Weekly layout: A = ingredient, then (date, checkbox) pairs B:C (Mon) ... N:O (Sun).
COLUMN_LETTERS: Tuple[Optional[str], ...] = (
    None, "A", "B", "C", "D", "E", "F", "G", "H", "I", "J", "K", "L", "M", "N", "O",
)

INGREDIENT_COLUMN = 1
HEADER_ROWS = 1


class WeekdayColumns(NamedTuple):
    date_column: int
    checkbox_column: int


def columns_for_weekday(weekday: int) -> WeekdayColumns:
    if not 1 <= weekday <= 7:
        raise ValueError(f"weekday must be 1..7, got {weekday!r}")
    return WeekdayColumns(date_column=weekday * 2, checkbox_column=weekday * 2 + 1)


def column_letter(index: int) -> str:
    if not 1 <= index < len(COLUMN_LETTERS):
        raise ValueError(f"column index out of layout: {index!r}")
    return COLUMN_LETTERS[index]


def write_off_range(sheet_name: str, weekday: int, first_row: int = HEADER_ROWS + 1) -> str:
    """
    A1 range covering the ingredient column through the weekday's checkbox column,
    e.g. "'Kitchen 1'!A2:G" for Wednesday.
    """
    cols = columns_for_weekday(weekday)
    last = column_letter(cols.checkbox_column)
    name = sheet_name.replace("'", "''")
    return f"'{name}'!{column_letter(INGREDIENT_COLUMN)}{first_row}:{last}"
