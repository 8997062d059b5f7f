from datetime import datetime, timezone

from app.report_range import DEFAULT_SELECTION, ReportSelection, resolve_report_range

NOW = datetime(2024, 3, 31, tzinfo=timezone.utc)


def test_month_is_thirty_days_not_calendar_month():
    export_range = resolve_report_range(ReportSelection.MONTH, NOW)
    assert export_range.start == datetime(2024, 3, 1, tzinfo=timezone.utc)
    assert export_range.end == NOW


def test_week_and_three_months():
    assert resolve_report_range("week", NOW).start == datetime(2024, 3, 24, tzinfo=timezone.utc)
    assert resolve_report_range("threeMonths", NOW).start == datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_all_is_unbounded():
    export_range = resolve_report_range(ReportSelection.ALL, NOW)
    assert export_range.start is None
    assert export_range.end is None
    assert export_range.unbounded


def test_default_selection_is_month():
    assert DEFAULT_SELECTION == ReportSelection.MONTH
