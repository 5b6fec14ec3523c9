
from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Sequence

from .clock import FixedOffsetClock
from .filters import DEFAULT_FILTERS, FilterSpec
from .model import EventOccurrence, WriteOffRecord
from .sheets import extract_write_offs

logger = logging.getLogger(__name__)


def classify_record(
    record: WriteOffRecord,
    *,
    unit_name: str,
    now: datetime,
    filters: Sequence[FilterSpec] = DEFAULT_FILTERS,
) -> List[EventOccurrence]:
    if record.is_written_off:
        return []
    seconds = FixedOffsetClock.seconds_until(record.due_at, now)
    return [
        EventOccurrence(
            event_type=f.event_type,
            unit_name=unit_name,
            grid_row=record.grid_row,
            grid_column=record.grid_column,
        )
        for f in filters
        if f.is_satisfied(seconds)
    ]


def classify_grid(
    grid,
    *,
    now: datetime,
    clock: FixedOffsetClock,
    filters: Sequence[FilterSpec] = DEFAULT_FILTERS,
) -> List[EventOccurrence]:
    """Read today's column pair from one unit grid and classify every pending write-off."""
    weekday = clock.weekday_of(now)
    records = extract_write_offs(grid.rows_for_weekday(weekday), weekday=weekday, now=now, clock=clock)

    occurrences: List[EventOccurrence] = []
    for record in records:
        occurrences.extend(classify_record(record, unit_name=grid.name, now=now, filters=filters))

    logger.debug(
        "%s: %d pending write-offs, %d events for weekday %d",
        grid.name, len(records), len(occurrences), weekday,
    )
    return occurrences
