
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class GridRow:
    row_number: int                     # 1-based sheet row
    ingredient: str                     # Column A text, may be blank
    due_at_cell: Any                    # Raw cell value from the weekday's date column
    checked_cell: Any                   # Raw cell value from the weekday's checkbox column


@dataclass(frozen=True)
class WriteOffRecord:
    ingredient: str
    due_at: datetime                    # Normalized onto today's date
    is_written_off: bool
    grid_row: int
    grid_column: int                    # The weekday's date column
    weekday: int


@dataclass(frozen=True)
class EventOccurrence:
    event_type: str
    unit_name: str
    grid_row: int
    grid_column: int


@dataclass(frozen=True)
class Unit:
    id: Any
    name: str


@dataclass(frozen=True)
class UnitEventSet:
    unit_id: Any
    unit_name: str
    events: Tuple[str, ...]             # Distinct event types, first-seen order

    def to_payload(self) -> Dict[str, Any]:
        return {"unit_id": self.unit_id, "unit_name": self.unit_name, "events": list(self.events)}


@dataclass(frozen=True)
class ColorSpec:
    event_type: str
    color: str                          # '#rrggbb'


@dataclass
class RunResult:
    now: datetime
    weekday: int
    occurrences: List[EventOccurrence] = field(default_factory=list)
    payload: List[Dict[str, Any]] = field(default_factory=list)
    dispatched: bool = False
    painted_cells: int = 0
    errors: List[str] = field(default_factory=list)

    def summary(self) -> Dict[str, Any]:
        return {
            "now": self.now.isoformat(),
            "weekday": self.weekday,
            "occurrences": [
                {
                    "event_type": o.event_type,
                    "unit_name": o.unit_name,
                    "row": o.grid_row,
                    "column": o.grid_column,
                }
                for o in self.occurrences
            ],
            "payload": self.payload,
            "dispatched": self.dispatched,
            "painted_cells": self.painted_cells,
            "errors": self.errors,
        }


def first_error_line(exc: BaseException, prefix: Optional[str] = None) -> str:
    msg = getattr(exc, "message", None) or str(exc) or exc.__class__.__name__
    msg = msg.splitlines()[0]
    return f"{prefix}: {msg}" if prefix else msg
