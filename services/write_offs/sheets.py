
from __future__ import annotations

import logging
from datetime import datetime, time
from typing import Any, Iterable, Iterator, List, Optional, Sequence

from services.exceptions import WriteOffValidationError
from .clock import FixedOffsetClock
from .columns import HEADER_ROWS, INGREDIENT_COLUMN, columns_for_weekday, write_off_range
from .model import GridRow, WriteOffRecord

logger = logging.getLogger(__name__)


def _is_due_time(value: Any) -> bool:
    # bare dates carry no time of day
    return isinstance(value, (datetime, time))


def parse_write_off(
    row: GridRow,
    *,
    weekday: int,
    now: datetime,
    clock: FixedOffsetClock,
) -> WriteOffRecord:
    """Validate one grid row. Raises WriteOffValidationError unless it is a pending write-off."""
    if not _is_due_time(row.due_at_cell):
        raise WriteOffValidationError(f"row {row.row_number}: no due time ({row.due_at_cell!r})")
    if not isinstance(row.checked_cell, bool):
        raise WriteOffValidationError(f"row {row.row_number}: checkbox is not boolean ({row.checked_cell!r})")
    if row.checked_cell:
        raise WriteOffValidationError(f"row {row.row_number}: already written off")

    cols = columns_for_weekday(weekday)
    return WriteOffRecord(
        ingredient=row.ingredient or f"row {row.row_number}",
        due_at=clock.normalize(row.due_at_cell, now),
        is_written_off=False,
        grid_row=row.row_number,
        grid_column=cols.date_column,
        weekday=weekday,
    )


def extract_write_offs(
    rows: Iterable[GridRow],
    *,
    weekday: int,
    now: datetime,
    clock: FixedOffsetClock,
) -> List[WriteOffRecord]:
    records: List[WriteOffRecord] = []
    for row in rows:
        try:
            records.append(parse_write_off(row, weekday=weekday, now=now, clock=clock))
        except WriteOffValidationError as e:
            logger.debug("Skipping %s", e.message)
    return records


def rows_from_values(values: Sequence[Sequence[Any]], weekday: int, first_row: int = HEADER_ROWS + 1) -> List[GridRow]:
    """
    Map a block read from column A onwards into GridRows for one weekday.
    Short rows are padded, since the API drops trailing blanks.
    """
    cols = columns_for_weekday(weekday)
    date_i = cols.date_column - INGREDIENT_COLUMN
    check_i = cols.checkbox_column - INGREDIENT_COLUMN

    def cell(r: Sequence[Any], i: int) -> Any:
        return r[i] if i < len(r) else None

    out: List[GridRow] = []
    for offset, r in enumerate(values):
        name = cell(r, 0)
        out.append(GridRow(
            row_number=first_row + offset,
            ingredient=name.strip() if isinstance(name, str) else "",
            due_at_cell=cell(r, date_i),
            checked_cell=cell(r, check_i),
        ))
    return out


class WriteOffSheet:
    """One unit's weekly grid, backed by a tab in the write-off spreadsheet."""

    def __init__(self, service, spreadsheet_id: str, name: str):
        self.service = service
        self.spreadsheet_id = spreadsheet_id
        self.name = name

    def rows_for_weekday(self, weekday: int) -> List[GridRow]:
        values = self.service.read_typed_range(self.spreadsheet_id, write_off_range(self.name, weekday))
        return rows_from_values(values, weekday)

    def __repr__(self) -> str:
        return f"WriteOffSheet({self.name!r})"


class SpreadsheetGrids:
    """
    One WriteOffSheet per tab, minus ignored_tabs. The tab list is fetched on every
    iteration, so tabs added between runs are picked up and a failed listing surfaces
    as GridReadError inside the run that hit it.
    """

    def __init__(self, service, spreadsheet_id: str, ignored_tabs: Optional[Iterable[str]] = None):
        self.service = service
        self.spreadsheet_id = spreadsheet_id
        self.ignored_tabs = frozenset(ignored_tabs or ())

    def __iter__(self) -> Iterator[WriteOffSheet]:
        for name in self.service.get_sheet_names(self.spreadsheet_id):
            if name in self.ignored_tabs:
                continue
            yield WriteOffSheet(self.service, self.spreadsheet_id, name)
