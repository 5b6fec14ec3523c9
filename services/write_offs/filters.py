
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple, Union


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


@dataclass(frozen=True)
class RangeFilter:
    """Fires while seconds-to-expiry sits inside [low_seconds, high_seconds]."""
    event_type: str
    low_seconds: float
    high_seconds: float

    def __post_init__(self):
        if self.low_seconds > self.high_seconds:
            raise ValueError(
                f"{self.event_type}: low_seconds {self.low_seconds} > high_seconds {self.high_seconds}"
            )

    def is_satisfied(self, seconds: float) -> bool:
        return self.low_seconds <= seconds <= self.high_seconds


@dataclass(frozen=True)
class PeriodicDeviationFilter:
    """
    Fires within +/- deviation_seconds of a multiple of interval_seconds.

    Anything more than deviation_seconds before the deadline is rejected up front,
    so with deviation < interval only zero and the overdue multiples can match;
    the upcoming multiples (600, 1200, ...) never fire.
    """
    event_type: str
    interval_seconds: float
    deviation_seconds: float

    def __post_init__(self):
        if self.interval_seconds <= 0:
            raise ValueError(f"{self.event_type}: interval_seconds must be > 0")
        if self.deviation_seconds < 0:
            raise ValueError(f"{self.event_type}: deviation_seconds must be >= 0")

    def is_satisfied(self, seconds: float) -> bool:
        if seconds > self.deviation_seconds:
            return False
        multiplier = _round_half_away(seconds / self.interval_seconds)
        threshold = multiplier * self.interval_seconds
        return threshold - self.deviation_seconds <= seconds <= threshold + self.deviation_seconds


FilterSpec = Union[RangeFilter, PeriodicDeviationFilter]


def already_expired(interval_seconds: float = 600, deviation_seconds: float = 30) -> PeriodicDeviationFilter:
    return PeriodicDeviationFilter("ALREADY_EXPIRED", interval_seconds, deviation_seconds)


def expire_at_minutes(minutes: int, deviation_seconds: float = 30) -> RangeFilter:
    nominal = minutes * 60
    return RangeFilter(f"EXPIRE_AT_{minutes}_MINUTES", nominal - deviation_seconds, nominal + deviation_seconds)


DEFAULT_FILTERS: Tuple[FilterSpec, ...] = (
    already_expired(600, 30),
    expire_at_minutes(5),       # 270..330
    expire_at_minutes(10),      # 570..630
    expire_at_minutes(15),      # 870..930
)
