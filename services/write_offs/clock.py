
from __future__ import annotations

from datetime import datetime, time, timedelta, timezone
from typing import Union

DEFAULT_UTC_OFFSET_HOURS = 3


class FixedOffsetClock:
    """
    Wall clock pinned to a fixed UTC offset (Moscow, GMT+3, by default).

    The grid stores only a time of day per weekday slot, so every due time is
    read as "that time, today" in this clock's frame. No DST handling.
    """

    def __init__(self, utc_offset_hours: float = DEFAULT_UTC_OFFSET_HOURS):
        self.utc_offset_hours = utc_offset_hours
        self.tz = timezone(timedelta(hours=utc_offset_hours))

    def now(self) -> datetime:
        return datetime.now(timezone.utc).astimezone(self.tz)

    @staticmethod
    def weekday_of(instant: datetime) -> int:
        # 1 = Monday ... 7 = Sunday
        return instant.isoweekday()

    @staticmethod
    def normalize(raw: Union[datetime, time], reference: datetime) -> datetime:
        """Put raw's hour/minute/second onto reference's calendar date."""
        return datetime(
            reference.year,
            reference.month,
            reference.day,
            raw.hour,
            raw.minute,
            raw.second,
            tzinfo=reference.tzinfo,
        )

    @staticmethod
    def seconds_until(due_at: datetime, now: datetime) -> float:
        return (due_at - now).total_seconds()
