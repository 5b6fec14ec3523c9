
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from services.exceptions import MutationError
from .model import ColorSpec, EventOccurrence

logger = logging.getLogger(__name__)

DEFAULT_COLORS: Tuple[ColorSpec, ...] = (
    ColorSpec("ALREADY_EXPIRED", "#f4cccc"),
    ColorSpec("EXPIRE_AT_5_MINUTES", "#fce5cd"),
    ColorSpec("EXPIRE_AT_10_MINUTES", "#fff2cc"),
    ColorSpec("EXPIRE_AT_15_MINUTES", "#d9ead3"),
)


def colors_with_overrides(overrides: Optional[Mapping[str, str]], base: Sequence[ColorSpec] = DEFAULT_COLORS) -> Tuple[ColorSpec, ...]:
    """Config overrides go first so they win the lookup; the rest of the table stays as is."""
    if not overrides:
        return tuple(base)
    return tuple(ColorSpec(k, v) for k, v in overrides.items()) + tuple(base)


def color_for(event_type: str, colors: Sequence[ColorSpec] = DEFAULT_COLORS) -> Optional[str]:
    for spec in colors:
        if spec.event_type == event_type:
            return spec.color
    return None


def plan_cell_colors(
    occurrences: Iterable[EventOccurrence],
    colors: Sequence[ColorSpec] = DEFAULT_COLORS,
) -> Dict[str, List[Tuple[int, int, str]]]:
    """unit_name -> [(row, column, colour)] in occurrence order; later entries win on the same cell."""
    plan: Dict[str, List[Tuple[int, int, str]]] = {}
    for occ in occurrences:
        color = color_for(occ.event_type, colors)
        if color is None:
            continue
        plan.setdefault(occ.unit_name, []).append((occ.grid_row, occ.grid_column, color))
    return plan


class CellPainter:
    """Colours each occurrence's due-time cell on its unit's tab."""

    def __init__(self, service, spreadsheet_id: str, colors: Sequence[ColorSpec] = DEFAULT_COLORS):
        self.service = service
        self.spreadsheet_id = spreadsheet_id
        self.colors = tuple(colors)

    def paint(self, occurrences: Iterable[EventOccurrence], errors: Optional[List[str]] = None) -> int:
        painted = 0
        for unit_name, cells in plan_cell_colors(occurrences, self.colors).items():
            try:
                painted += self.service.set_cell_backgrounds(self.spreadsheet_id, unit_name, cells)
            except MutationError as e:
                logger.error(f"Painting skipped for {unit_name}: {e.message}")
                if errors is not None:
                    errors.append(f"paint {unit_name}: {e.message}")
        return painted
