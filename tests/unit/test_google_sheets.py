import unittest
from datetime import datetime
from unittest.mock import patch, MagicMock

from gspread.exceptions import APIError, WorksheetNotFound

from services.exceptions import GridReadError, MutationError
from services.google_sheets_service import GoogleSheetsService, hex_to_rgb, serial_to_datetime


def _cell(value=None, kind=None, fmt=None):
    cell = {}
    if kind is not None:
        cell["effectiveValue"] = {kind: value}
    if fmt is not None:
        cell["effectiveFormat"] = {"numberFormat": {"type": fmt}}
    return cell


class TestGoogleSheetsService(unittest.TestCase):
    @patch('services.google_sheets_service.gspread.authorize')
    @patch.object(GoogleSheetsService, '_authenticate_google_sheets')
    def setUp(self, mock_auth, mock_authorize):
        # Mock the credentials and gspread client
        mock_auth.return_value = MagicMock()
        self.mock_client = MagicMock()
        mock_authorize.return_value = self.mock_client

        self.service = GoogleSheetsService(json_file="./credentials/dummy_service_account.json")
        self.mock_sheet = self.mock_client.open_by_key.return_value

    def test_read_typed_range_keeps_cell_types(self):
        self.mock_sheet.fetch_sheet_metadata.return_value = {
            "sheets": [{"data": [{"rowData": [
                {"values": [
                    _cell("Milk", "stringValue"),
                    _cell(45427.5, "numberValue", "DATE_TIME"),
                    _cell(False, "boolValue"),
                ]},
                {"values": [
                    _cell("Eggs", "stringValue"),
                    _cell(0.75, "numberValue", "TIME"),
                    _cell(True, "boolValue"),
                ]},
                {"values": [_cell("Ham", "stringValue"), _cell(3, "numberValue", "NUMBER"), _cell()]},
                {},
            ]}]}]
        }

        rows = self.service.read_typed_range('sheet_id', "'Kitchen 1'!A2:C")

        self.assertEqual(rows, [
            ["Milk", datetime(2024, 5, 15, 12, 0), False],
            ["Eggs", datetime(1899, 12, 30, 18, 0), True],
            ["Ham", 3.0, None],
            [],
        ])
        params = self.mock_sheet.fetch_sheet_metadata.call_args.kwargs["params"]
        self.assertEqual(params["ranges"], "'Kitchen 1'!A2:C")
        self.assertEqual(params["includeGridData"], "true")

    def test_read_typed_range_failure_raises_grid_read_error(self):
        self.mock_client.open_by_key.side_effect = Exception("APIError: Sheet not found")

        with self.assertLogs(level='ERROR') as log:
            with self.assertRaises(GridReadError):
                self.service.read_typed_range('invalid_sheet_id', "'K'!A2:C")

        self.assertIn("Error reading 'K'!A2:C from invalid_sheet_id", log.output[0])

    @patch('services.google_sheets_service.time.sleep')
    def test_read_typed_range_retries_rate_limits(self, mock_sleep):
        response = MagicMock()
        response.status_code = 429
        response.json.return_value = {"error": {"code": 429, "message": "Quota exceeded", "status": "RESOURCE_EXHAUSTED"}}
        self.mock_sheet.fetch_sheet_metadata.side_effect = [APIError(response), {"sheets": []}]

        self.assertEqual(self.service.read_typed_range('sheet_id', "'K'!A2:C"), [])
        self.assertEqual(self.mock_sheet.fetch_sheet_metadata.call_count, 2)
        mock_sleep.assert_called_once()

    def test_set_cell_backgrounds_batches_formats(self):
        ws = MagicMock()
        self.mock_sheet.worksheet.return_value = ws

        count = self.service.set_cell_backgrounds('sheet_id', 'Kitchen 1', [(2, 6, "#ff0000"), (12, 14, "#00ff00")])

        self.assertEqual(count, 2)
        self.mock_sheet.worksheet.assert_called_once_with('Kitchen 1')
        ws.batch_format.assert_called_once_with([
            {"range": "F2", "format": {"backgroundColor": {"red": 1.0, "green": 0.0, "blue": 0.0}}},
            {"range": "N12", "format": {"backgroundColor": {"red": 0.0, "green": 1.0, "blue": 0.0}}},
        ])

    def test_set_cell_backgrounds_missing_worksheet(self):
        self.mock_sheet.worksheet.side_effect = WorksheetNotFound("Kitchen 9")

        with self.assertRaises(MutationError) as ctx:
            self.service.set_cell_backgrounds('sheet_id', 'Kitchen 9', [(2, 6, "#ff0000")])

        self.assertIn("no longer exists", ctx.exception.message)

    def test_set_cell_backgrounds_bad_colour(self):
        with self.assertRaises(MutationError):
            self.service.set_cell_backgrounds('sheet_id', 'Kitchen 1', [(2, 6, "reddish")])
        self.mock_sheet.worksheet.assert_not_called()

    def test_set_cell_backgrounds_nothing_to_do(self):
        self.assertEqual(self.service.set_cell_backgrounds('sheet_id', 'Kitchen 1', []), 0)
        self.mock_client.open_by_key.assert_not_called()

    def test_get_sheet_names_skips_hidden_when_asked(self):
        visible, hidden = MagicMock(hidden=False), MagicMock(hidden=True)
        visible.title, hidden.title = "Kitchen 1", "Archive"
        self.mock_sheet.worksheets.return_value = [visible, hidden]

        self.assertEqual(self.service.get_sheet_names('sheet_id'), ["Kitchen 1", "Archive"])
        self.assertEqual(self.service.get_sheet_names('sheet_id', include_hidden=False), ["Kitchen 1"])

    def test_get_sheet_names_failure(self):
        self.mock_client.open_by_key.side_effect = Exception("403 PERMISSION_DENIED")

        with self.assertLogs(level='ERROR'):
            with self.assertRaises(GridReadError) as ctx:
                self.service.get_sheet_names('invalid_sheet_id')
        self.assertIn("403 PERMISSION_DENIED", ctx.exception.message)


class TestSheetHelpers(unittest.TestCase):
    def test_serial_to_datetime(self):
        self.assertEqual(serial_to_datetime(45427.5), datetime(2024, 5, 15, 12, 0))
        self.assertEqual(serial_to_datetime(0.5 + 5 / 86400), datetime(1899, 12, 30, 12, 0, 5))

    def test_hex_to_rgb(self):
        self.assertEqual(hex_to_rgb("#ffffff"), {"red": 1.0, "green": 1.0, "blue": 1.0})
        self.assertEqual(hex_to_rgb("000"), {"red": 0.0, "green": 0.0, "blue": 0.0})
        with self.assertRaises(ValueError):
            hex_to_rgb("#12")


if __name__ == '__main__':
    unittest.main()
