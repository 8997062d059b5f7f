from datetime import date, datetime, timezone

from app.categories import Category
from app.formatting import ENGLISH, HEBREW
from app.ranges import Status


def test_hebrew_labels():
    sunday = date(2024, 3, 31)
    assert HEBREW.day_label(sunday) == "31.03.24"
    assert HEBREW.weekday_label(sunday) == "יום ראשון"
    assert HEBREW.category_label(Category.FASTING) == "צום"
    assert HEBREW.status_label(Status.ABOVE_RANGE, short=True) == "מעל"


def test_english_labels():
    assert ENGLISH.weekday_label(date(2024, 3, 30)) == "Saturday"
    assert ENGLISH.week_badge(date(2024, 3, 24), date(2024, 3, 30)) == "24/03 - 30/03"
    assert ENGLISH.time_label(datetime(2024, 3, 30, 7, 5, tzinfo=timezone.utc)) == "07:05"
