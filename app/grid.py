from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo

from app.categories import Category
from app.formatting import HEBREW, DateFormatter
from app.models import Measurement


@dataclass(frozen=True)
class WeekWindow:
    start: datetime
    end: datetime

    @property
    def last_instant(self) -> datetime:
        """Final microsecond of the end day, the inclusive bound for filtering."""
        return datetime.combine(self.end.date(), time.max, tzinfo=self.end.tzinfo)


@dataclass
class DayRow:
    date: datetime
    display_label: str
    weekday_label: str
    cells: dict[Category, list[Measurement]] = field(default_factory=dict)

    @property
    def key(self) -> str:
        return self.date.isoformat()

    def is_empty(self) -> bool:
        return not any(self.cells.values())


def _midnight(day: date, zone: tzinfo | None) -> datetime:
    return datetime.combine(day, time.min, tzinfo=zone)


def _local_day(moment: datetime, zone: tzinfo | None) -> date:
    return moment.astimezone(zone).date()


def week_start(reference: datetime) -> datetime:
    # weekday(): Monday=0 ... Sunday=6
    days_since_sunday = (reference.weekday() + 1) % 7
    return _midnight(reference.date() - timedelta(days=days_since_sunday), reference.tzinfo)


def week_window(now: datetime, offset: int = 0) -> WeekWindow:
    """Window of the week containing ``now`` shifted by ``offset`` weeks.

    Weeks after the current one are not reachable, positive offsets collapse to 0.
    """
    offset = min(offset, 0)
    start = _midnight(week_start(now).date() + timedelta(weeks=offset), now.tzinfo)
    return WeekWindow(start=start, end=_midnight(start.date() + timedelta(days=6), now.tzinfo))


def next_week_offset(offset: int) -> int:
    return min(offset + 1, 0)


def build_grid(
    measurements: Iterable[Measurement],
    categories: Sequence[Category],
    window_start: datetime,
    window_end: datetime,
    formatter: DateFormatter = HEBREW,
) -> list[DayRow]:
    """Bucket readings into one row per calendar day between the window bounds.

    Days are local days in ``window_start``'s timezone. Every row carries a list for
    every category, sorted by time. Readings falling outside the window are dropped;
    callers are expected to filter first.
    """
    if window_start.tzinfo is None:
        raise ValueError("window bounds must be timezone-aware")
    zone = window_start.tzinfo
    first_day = window_start.date()
    day_count = max((_local_day(window_end, zone) - first_day).days + 1, 0)

    rows: list[DayRow] = []
    for index in range(day_count):
        day = first_day + timedelta(days=index)
        rows.append(
            DayRow(
                date=_midnight(day, zone),
                display_label=formatter.day_label(day),
                weekday_label=formatter.weekday_label(day),
                cells={category: [] for category in categories},
            )
        )

    for measurement in measurements:
        index = (_local_day(measurement.instant, zone) - first_day).days
        if index < 0 or index >= day_count:
            continue
        cell = rows[index].cells.get(measurement.category)
        if cell is None:
            continue
        cell.append(measurement)

    for row in rows:
        for cell in row.cells.values():
            cell.sort(key=lambda m: m.instant)
    return rows


def filter_by_range(
    measurements: Iterable[Measurement],
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[Measurement]:
    kept: list[Measurement] = []
    for measurement in measurements:
        instant = measurement.instant
        if start is not None and instant < start:
            continue
        if end is not None and instant > end:
            continue
        kept.append(measurement)
    return kept


def is_future_date(day: datetime, now: datetime) -> bool:
    end_of_today = datetime.combine(now.date(), time.max, tzinfo=now.tzinfo)
    return day > end_of_today


def merge_date_with_current_time(day: datetime, now: datetime) -> datetime:
    """The cell's calendar day at the current wall-clock time."""
    local_now = now.astimezone(day.tzinfo) if day.tzinfo else now
    return datetime.combine(day.date(), local_now.time(), tzinfo=day.tzinfo)
