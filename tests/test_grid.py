from datetime import datetime, timedelta, timezone

from dateutil import tz

from app.categories import CATEGORIES, Category
from app.formatting import ENGLISH
from app.grid import (
    build_grid,
    filter_by_range,
    is_future_date,
    merge_date_with_current_time,
    next_week_offset,
    week_start,
    week_window,
)
from app.models import new_measurement
from app.ranges import Status

UTC = timezone.utc
SUNDAY = datetime(2024, 3, 24, tzinfo=UTC)


def reading(value, category, when):
    return new_measurement(value, category, when)


def test_week_start_is_most_recent_sunday_at_midnight():
    assert week_start(datetime(2024, 3, 27, 15, 30, tzinfo=UTC)) == SUNDAY
    assert week_start(datetime(2024, 3, 30, 23, 59, tzinfo=UTC)) == SUNDAY
    assert week_start(datetime(2024, 3, 24, 8, 0, tzinfo=UTC)) == SUNDAY


def test_week_window_never_moves_past_current_week():
    now = datetime(2024, 3, 27, 10, tzinfo=UTC)
    current = week_window(now)
    assert current.start == SUNDAY
    assert current.end == SUNDAY + timedelta(days=6)
    assert week_window(now, 2) == current
    assert week_window(now, -1).start == datetime(2024, 3, 17, tzinfo=UTC)
    assert next_week_offset(0) == 0
    assert next_week_offset(-3) == -2


def test_week_window_last_instant_covers_saturday():
    window = week_window(datetime(2024, 3, 27, 10, tzinfo=UTC))
    saturday_night = reading(100, Category.POST_DINNER, datetime(2024, 3, 30, 21, 0, tzinfo=UTC))
    assert filter_by_range([saturday_night], window.start, window.last_instant) == [saturday_night]


def test_grid_has_one_row_per_day_even_when_empty():
    rows = build_grid([], CATEGORIES, SUNDAY, SUNDAY + timedelta(days=6))

    assert len(rows) == 7
    for previous, current in zip(rows, rows[1:]):
        assert current.date - previous.date == timedelta(days=1)
    for row in rows:
        assert list(row.cells) == list(CATEGORIES)
        assert all(cell == [] for cell in row.cells.values())


def test_reading_lands_in_its_day_only():
    m = reading(90, Category.POST_LUNCH, SUNDAY + timedelta(days=3, hours=5))
    rows = build_grid([m], CATEGORIES, SUNDAY, SUNDAY + timedelta(days=6))

    hits = [index for index, row in enumerate(rows) if m in row.cells[Category.POST_LUNCH]]
    assert hits == [3]


def test_cell_readings_sorted_by_time():
    afternoon = reading(110, Category.FASTING, SUNDAY + timedelta(hours=14))
    morning = reading(90, Category.FASTING, SUNDAY + timedelta(hours=8))
    rows = build_grid([afternoon, morning], CATEGORIES, SUNDAY, SUNDAY + timedelta(days=6))

    assert rows[0].cells[Category.FASTING] == [morning, afternoon]


def test_out_of_window_readings_are_dropped():
    before = reading(100, Category.FASTING, SUNDAY - timedelta(hours=1))
    after = reading(100, Category.FASTING, SUNDAY + timedelta(days=7, hours=1))
    rows = build_grid([before, after], CATEGORIES, SUNDAY, SUNDAY + timedelta(days=6))

    assert all(row.is_empty() for row in rows)


def test_bucketing_uses_local_calendar_day():
    jerusalem = tz.gettz("Asia/Jerusalem")
    start = datetime(2024, 1, 7, tzinfo=jerusalem)
    # 23:30 UTC is 01:30 the next day in Jerusalem (UTC+2 in January)
    late = reading(100, Category.POST_DINNER, datetime(2024, 1, 8, 23, 30, tzinfo=UTC))
    rows = build_grid([late], CATEGORIES, start, start + timedelta(days=6))

    assert rows[2].cells[Category.POST_DINNER] == [late]
    assert rows[1].cells[Category.POST_DINNER] == []


def test_row_labels_come_from_formatter():
    rows = build_grid([], CATEGORIES, SUNDAY, SUNDAY + timedelta(days=6), ENGLISH)
    assert rows[0].display_label == "24/03/24"
    assert rows[0].weekday_label == "Sunday"
    assert rows[6].weekday_label == "Saturday"


def test_filter_bounds_are_inclusive():
    at = datetime(2024, 3, 25, 8, 0, tzinfo=UTC)
    m = reading(100, Category.FASTING, at)
    tick = timedelta(microseconds=1)

    assert filter_by_range([m], at, at) == [m]
    assert filter_by_range([m], at + tick, None) == []
    assert filter_by_range([m], None, at - tick) == []
    assert filter_by_range([m]) == [m]


def test_week_scenario_with_default_ranges():
    fasting = reading(100, Category.FASTING, SUNDAY + timedelta(hours=7))
    breakfast = reading(130, Category.POST_BREAKFAST, SUNDAY + timedelta(hours=9, minutes=5))
    rows = build_grid([fasting, breakfast], CATEGORIES, SUNDAY, SUNDAY + timedelta(days=6))

    assert [(m.value, m.status) for m in rows[0].cells[Category.FASTING]] == [(100, Status.ABOVE_RANGE)]
    assert [(m.value, m.status) for m in rows[0].cells[Category.POST_BREAKFAST]] == [(130, Status.ABOVE_RANGE)]
    assert rows[0].cells[Category.POST_LUNCH] == []
    assert rows[0].cells[Category.POST_DINNER] == []
    assert all(row.is_empty() for row in rows[1:])


def test_future_days_and_default_cell_timestamp():
    now = datetime(2024, 3, 27, 10, 15, 30, tzinfo=UTC)
    assert is_future_date(datetime(2024, 3, 28, tzinfo=UTC), now)
    assert not is_future_date(datetime(2024, 3, 27, tzinfo=UTC), now)

    merged = merge_date_with_current_time(datetime(2024, 3, 25, tzinfo=UTC), now)
    assert merged == datetime(2024, 3, 25, 10, 15, 30, tzinfo=UTC)
