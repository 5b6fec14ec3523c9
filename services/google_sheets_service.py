import json
import logging
import time
import os
from datetime import datetime, timedelta
import gspread
from gspread.exceptions import APIError, WorksheetNotFound
from google.oauth2.service_account import Credentials
from pathlib import Path

from services.exceptions import GridReadError, MutationError

logger = logging.getLogger(__name__)

# Sheets stores date/times as days since 1899-12-30.
_SERIAL_EPOCH = datetime(1899, 12, 30)
_DATE_FORMATS = {"DATE", "TIME", "DATE_TIME"}
_GRID_FIELDS = "sheets.data(startRow,startColumn,rowData.values(effectiveValue,effectiveFormat.numberFormat.type))"


def serial_to_datetime(serial: float) -> datetime:
    return _SERIAL_EPOCH + timedelta(seconds=round(serial * 86400))


def hex_to_rgb(color: str) -> dict[str, float]:
    """'#f4cccc' -> {'red': 0.957, 'green': 0.8, 'blue': 0.8} (Sheets API colour)."""
    h = (color or "").strip().lstrip("#")
    if len(h) == 3:
        h = "".join(ch * 2 for ch in h)
    if len(h) != 6:
        raise ValueError(f"Not a hex colour: {color!r}")
    r, g, b = (int(h[i:i + 2], 16) / 255.0 for i in (0, 2, 4))
    return {"red": r, "green": g, "blue": b}


def _typed_cell(cell: dict):
    """Turn a CellData dict into a Python value: datetime, bool, str, float or None."""
    ev = cell.get("effectiveValue") or {}
    if "boolValue" in ev:
        return bool(ev["boolValue"])
    if "stringValue" in ev:
        return ev["stringValue"]
    if "numberValue" in ev:
        fmt = ((cell.get("effectiveFormat") or {}).get("numberFormat") or {}).get("type")
        if fmt in _DATE_FORMATS:
            return serial_to_datetime(ev["numberValue"])
        return float(ev["numberValue"])
    return None


class GoogleSheetsService:
    """
    A class to handle Google Sheets operations.
    Automatically uses the service account JSON from the app's main folder.
    """

    @staticmethod
    def _get_service_account_path():
        env = os.environ.get("GSHEETS_CREDENTIALS") or os.environ.get("GOOGLE_APPLICATION_CREDENTIALS")
        if env and os.path.isfile(env):
            return env

        candidates = [
            Path(__file__).resolve().parents[1] / "credentials" / "service_account.json",
            Path.cwd() / "credentials" / "service_account.json",
            Path.cwd() / "service_account.json",
        ]
        for p in candidates:
            if p.is_file():
                return str(p)

        raise FileNotFoundError(
            "service_account.json not found. Set GSHEETS_CREDENTIALS or GOOGLE_APPLICATION_CREDENTIALS.")

    @staticmethod
    def _authenticate_google_sheets(json_file: str) -> Credentials:
        """
        Authenticate with the Google Sheets API.

        :param json_file: JSON configuration file containing service account credentials.
        :type json_file: str
        :return: Credentials object for use in authorization.
        :rtype: google.oauth2.service_account.Credentials
        """
        with open(json_file) as f:
            creds = json.load(f)
        scope = [
            "https://www.googleapis.com/auth/spreadsheets"
        ]
        return Credentials.from_service_account_info(creds, scopes=scope)

    def __init__(self, json_file: str = None):
        """
        Initialize the GoogleSheetsService with an authorized gspread client.
        If no json_file is provided, uses the app's default credentials path.

        :param json_file: Path to the JSON configuration file.
        :type json_file: str
        """
        if json_file is None:
            json_file = self._get_service_account_path()
        creds = self._authenticate_google_sheets(json_file)
        self._client = gspread.authorize(creds)

        self._ss_cache: dict[str, tuple[float, gspread.Spreadsheet]] = {}
        self._ws_cache: dict[tuple[str, str], tuple[float, gspread.Worksheet]] = {}
        self._ss_ttl = 60  # seconds

    def _open(self, spreadsheet_id: str) -> gspread.Spreadsheet:
        now = time.time()
        hit = self._ss_cache.get(spreadsheet_id)
        if hit and (now - hit[0] < self._ss_ttl):
            return hit[1]
        sh = self._client.open_by_key(spreadsheet_id)
        self._ss_cache[spreadsheet_id] = (now, sh)
        return sh

    def _worksheet(self, spreadsheet_id: str, sheet_name: str) -> gspread.Worksheet:
        now = time.time()
        key = (spreadsheet_id, sheet_name)
        hit = self._ws_cache.get(key)
        if hit and (now - hit[0] < self._ss_ttl):
            return hit[1]
        ws = self._open(spreadsheet_id).worksheet(sheet_name)
        self._ws_cache[key] = (now, ws)
        return ws

    def get_sheet_names(self, spreadsheet_id: str, *, include_hidden: bool = True) -> list[str]:
        """
        Return worksheet (tab) names. Set include_hidden=False to ignore hidden tabs.
        Raises GridReadError when the spreadsheet cannot be opened.
        """
        try:
            sh = self._open(spreadsheet_id)
            names: list[str] = []
            for ws in sh.worksheets():
                hidden = getattr(ws, "hidden", None)
                if hidden is None:
                    props = getattr(ws, "properties", None) or getattr(ws, "_properties", {}) or {}
                    hidden = bool(props.get("hidden", False))
                if include_hidden or not hidden:
                    names.append(ws.title)
            return names
        except Exception as e:
            logger.error(f"Error listing sheets for {spreadsheet_id}: {e}")
            raise GridReadError(f"Could not list tabs of {spreadsheet_id}: {e}") from e

    def read_typed_range(self, spreadsheet_id: str, range_a1: str) -> list[list]:
        """
        Read an A1 range keeping cell types: date/time-formatted numbers come back as
        naive datetimes, checkboxes as bools, text as str, blanks as None.

        Uses spreadsheets.get with includeGridData because the plain values API cannot
        tell a date cell from a number cell.
        """
        try:
            sh = self._open(spreadsheet_id)
            meta = self._with_backoff(lambda: sh.fetch_sheet_metadata(params={
                "includeGridData": "true",
                "ranges": range_a1,
                "fields": _GRID_FIELDS,
            }))
        except Exception as e:
            logger.error(f"Error reading {range_a1} from {spreadsheet_id}: {e}")
            raise GridReadError(f"Could not read {range_a1}: {e}") from e

        rows: list[list] = []
        for sheet in meta.get("sheets", []):
            for block in sheet.get("data", []):
                for row_data in block.get("rowData", []):
                    rows.append([_typed_cell(c) for c in row_data.get("values", [])])
        return rows

    def set_cell_backgrounds(
            self,
            spreadsheet_id: str,
            sheet_name: str,
            cells: list[tuple[int, int, str]],
    ) -> int:
        """
        Paint (row, column, '#rrggbb') cells on one tab in a single batch_format call.
        Returns the number of cells sent.
        """
        if not cells:
            return 0
        try:
            formats = [
                {
                    "range": f"{self._col_letter(col)}{row}",
                    "format": {"backgroundColor": hex_to_rgb(color)},
                }
                for row, col, color in cells
            ]
        except ValueError as e:
            raise MutationError(f"Bad colour for '{sheet_name}': {e}") from e

        try:
            ws = self._worksheet(spreadsheet_id, sheet_name)
        except WorksheetNotFound as e:
            raise MutationError(f"Worksheet '{sheet_name}' no longer exists") from e
        except Exception as e:
            raise MutationError(f"Could not open worksheet '{sheet_name}': {e}") from e

        try:
            self._with_backoff(lambda: ws.batch_format(formats))
        except Exception as e:
            raise MutationError(f"Could not colour cells on '{sheet_name}': {e}") from e
        return len(formats)

    @staticmethod
    def _col_letter(n: int) -> str:
        s = ""
        while n:
            n, r = divmod(n - 1, 26)
            s = chr(65 + r) + s
        return s

    @staticmethod
    def _with_backoff(fn, *, tries: int = 5, base: float = 0.6, factor: float = 2.0):
        """Generic retry for Sheets 429 rate limits."""
        delay = base
        for attempt in range(tries):
            try:
                return fn()
            except APIError as e:
                code = getattr(getattr(e, "response", None), "status_code", None)
                if code == 429 or "quota" in str(e).lower() or "rate" in str(e).lower():
                    if attempt == tries - 1:
                        raise
                    time.sleep(delay)
                    delay *= factor
                    continue
                raise
