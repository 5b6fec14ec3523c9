import pytest
from datetime import datetime, timedelta, timezone

from app import create_app
from services.write_offs.clock import FixedOffsetClock
from services.write_offs.columns import columns_for_weekday
from services.write_offs.sheets import rows_from_values

MSK = timezone(timedelta(hours=3))


class FakeGrid:
    """In-memory unit grid: `values` is the sheet from A2 down, as read_typed_range returns it."""

    def __init__(self, name, values=None, error=None):
        self.name = name
        self.values = values or []
        self.error = error
        self.requested_weekdays = []

    def rows_for_weekday(self, weekday):
        self.requested_weekdays.append(weekday)
        if self.error is not None:
            raise self.error
        return rows_from_values(self.values, weekday)


def make_sheet_row(ingredient="", weekday=3, due=None, checked=False, width=15):
    """
    Build one sheet row with the ingredient in A and (due, checked) in the weekday's column pair.
    """
    row = [None] * width
    row[0] = ingredient
    cols = columns_for_weekday(weekday)
    row[cols.date_column - 1] = due
    row[cols.checkbox_column - 1] = checked
    return row


@pytest.fixture
def clock():
    return FixedOffsetClock()


@pytest.fixture
def now():
    """Wednesday 15 May 2024, 12:00:00 at +03:00."""
    return datetime(2024, 5, 15, 12, 0, 0, tzinfo=MSK)


@pytest.fixture
def due_in(now):
    """Naive sheet time `seconds` away from `now` (the date part is deliberately wrong)."""
    def _due_in(seconds):
        t = now + timedelta(seconds=seconds)
        return datetime(1899, 12, 30, t.hour, t.minute, t.second)
    return _due_in


@pytest.fixture
def app_context():
    """Fixture for Flask app context."""
    app = create_app('Testing')
    with app.app_context():
        yield app


@pytest.fixture
def client(app_context):
    return app_context.test_client()


@pytest.fixture
def sheet_row():
    return make_sheet_row


@pytest.fixture
def fake_grid():
    return FakeGrid
