
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List

from services.exceptions import UnitNotFoundError
from .model import EventOccurrence, Unit, UnitEventSet

logger = logging.getLogger(__name__)


def index_units(units: Iterable[Unit]) -> Dict[str, Unit]:
    by_name: Dict[str, Unit] = {}
    for unit in units:
        by_name.setdefault(unit.name, unit)  # first entry wins on duplicate names
    return by_name


def resolve_unit(name: str, by_name: Dict[str, Unit]) -> Unit:
    try:
        return by_name[name]
    except KeyError:
        raise UnitNotFoundError(f"No unit named {name!r} in the unit directory") from None


def aggregate_unit_events(
    occurrences: Iterable[EventOccurrence],
    units: Iterable[Unit],
) -> List[UnitEventSet]:
    """
    Collapse occurrences into one UnitEventSet per unit.

    Units come out in the order their grids produced occurrences, each event type
    listed once. Grid names missing from the directory are dropped.
    """
    grouped: Dict[str, Dict[str, None]] = {}
    for occ in occurrences:
        grouped.setdefault(occ.unit_name, {}).setdefault(occ.event_type, None)

    by_name = index_units(units)
    out: List[UnitEventSet] = []
    for unit_name, events in grouped.items():
        try:
            unit = resolve_unit(unit_name, by_name)
        except UnitNotFoundError as e:
            logger.warning("%s; dropping %d event(s)", e.message, len(events))
            continue
        out.append(UnitEventSet(unit_id=unit.id, unit_name=unit.name, events=tuple(events)))
    return out


def build_payload(unit_event_sets: Iterable[UnitEventSet]) -> List[Dict[str, Any]]:
    return [s.to_payload() for s in unit_event_sets]
