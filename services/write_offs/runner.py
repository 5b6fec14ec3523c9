
from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import Iterable, Optional, Sequence

from services.config_bridge import get_cfg, lookup
from services.exceptions import GridReadError, TransportError
from .aggregate import aggregate_unit_events, build_payload
from .classify import classify_grid
from .clock import DEFAULT_UTC_OFFSET_HOURS, FixedOffsetClock
from .filters import DEFAULT_FILTERS, FilterSpec
from .model import RunResult, first_error_line
from .paint import CellPainter, colors_with_overrides
from .sheets import SpreadsheetGrids

logger = logging.getLogger(__name__)


class WriteOffMonitor:
    """
    One pass over every unit grid: classify today's pending write-offs, then hand the
    result to the optional consumers.

    - directory: resolves grid names to units, needed to build the dispatch payload
    - sink:      receives the payload (skipped when empty)
    - painter:   colours the originating cells

    Each stage logs its failures and records them on the RunResult without stopping the later stages.
    """

    def __init__(
        self,
        grids: Iterable,
        *,
        clock: Optional[FixedOffsetClock] = None,
        filters: Sequence[FilterSpec] = DEFAULT_FILTERS,
        directory=None,
        sink=None,
        painter: Optional[CellPainter] = None,
    ):
        self.grids = grids
        self.clock = clock or FixedOffsetClock()
        self.filters = tuple(filters)
        self.directory = directory
        self.sink = sink
        self.painter = painter

    def run(self, now: Optional[datetime] = None) -> RunResult:
        now = now or self.clock.now()
        result = RunResult(now=now, weekday=self.clock.weekday_of(now))

        try:
            grids = list(self.grids)
        except GridReadError as e:
            logger.error(f"No unit grids to check: {e.message}")
            result.errors.append(first_error_line(e, "grids"))
            grids = []

        for grid in grids:
            try:
                result.occurrences.extend(
                    classify_grid(grid, now=now, clock=self.clock, filters=self.filters)
                )
            except GridReadError as e:
                logger.error(f"Skipping grid {grid.name}: {e.message}")
                result.errors.append(first_error_line(e, f"read {grid.name}"))

        if self.directory is not None:
            try:
                units = self.directory.list_units()
                result.payload = build_payload(aggregate_unit_events(result.occurrences, units))
            except TransportError as e:
                logger.error(f"No dispatch payload, unit directory unavailable: {e.message}")
                result.errors.append(first_error_line(e, "directory"))

        logger.info(
            "Write-off check %s (weekday %d): %d event(s), payload %s",
            now.isoformat(timespec="seconds"), result.weekday, len(result.occurrences), result.payload,
        )

        self._dispatch(result)
        self._paint(result)
        return result

    def _dispatch(self, result: RunResult) -> None:
        if self.sink is None or not result.payload:
            return
        try:
            self.sink.dispatch(result.payload)
            result.dispatched = True
        except TransportError as e:
            result.errors.append(first_error_line(e, "dispatch"))

    def _paint(self, result: RunResult) -> None:
        if self.painter is None or not result.occurrences:
            return
        result.painted_cells = self.painter.paint(result.occurrences, errors=result.errors)


def _config_reader(config):
    # keyed reads: cfg("unit_directory.url", default)
    if config is None:
        return lambda key, default=None: get_cfg(key, default=default)
    section = config.get("write_offs", config)
    return lambda key, default=None: lookup(section, key, default)


def build_monitor(config: Optional[dict] = None, *, dispatch: bool = True, paint: bool = True) -> WriteOffMonitor:
    """
    Wire the monitor to Google Sheets and the HTTP services from the `write_offs`
    config section (config.json / app.config when `config` is None).
    Dispatch needs both unit_directory.url and event_sink.url.
    """
    from services.google_sheets_service import GoogleSheetsService
    from services.unit_directory import UnitDirectoryService
    from services.event_dispatch import EventDispatchService

    cfg = _config_reader(config)
    spreadsheet_id = os.getenv("WRITE_OFFS_SPREADSHEET_ID") or cfg("spreadsheet_id")
    if not spreadsheet_id:
        raise RuntimeError("write_offs.spreadsheet_id is not configured (or set WRITE_OFFS_SPREADSHEET_ID)")

    svc = GoogleSheetsService()
    clock = FixedOffsetClock(cfg("utc_offset_hours", DEFAULT_UTC_OFFSET_HOURS))

    directory_url = cfg("unit_directory.url")
    sink_url = cfg("event_sink.url")

    directory = sink = None
    if directory_url:
        directory = UnitDirectoryService(directory_url, timeout=cfg("unit_directory.timeout", 10))
    if dispatch and sink_url:
        if not directory_url:
            logger.warning("write_offs.event_sink.url is set but unit_directory.url is not; nothing will be dispatched")
        sink = EventDispatchService(sink_url, timeout=cfg("event_sink.timeout", 10))
    elif dispatch:
        logger.warning("write_offs.event_sink.url not set; events will only be logged")

    painter = None
    if paint:
        painter = CellPainter(svc, spreadsheet_id, colors_with_overrides(cfg("colors")))

    return WriteOffMonitor(
        SpreadsheetGrids(svc, spreadsheet_id, cfg("ignored_tabs")),
        clock=clock,
        directory=directory,
        sink=sink,
        painter=painter,
    )
