from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum


class ReportSelection(str, Enum):
    WEEK = "week"
    MONTH = "month"
    THREE_MONTHS = "threeMonths"
    ALL = "all"


DEFAULT_SELECTION = ReportSelection.MONTH

SELECTION_LABELS: dict[ReportSelection, str] = {
    ReportSelection.WEEK: "שבוע אחרון",
    ReportSelection.MONTH: "חודש אחרון (ברירת מחדל)",
    ReportSelection.THREE_MONTHS: "3 חודשים אחרונים",
    ReportSelection.ALL: "כל המדידות",
}

_LOOKBACK_DAYS: dict[ReportSelection, int] = {
    ReportSelection.WEEK: 7,
    ReportSelection.MONTH: 30,
    ReportSelection.THREE_MONTHS: 90,
}


@dataclass(frozen=True)
class ExportRange:
    start: datetime | None = None
    end: datetime | None = None

    @property
    def unbounded(self) -> bool:
        return self.start is None and self.end is None


def resolve_report_range(selection: ReportSelection | str, now: datetime) -> ExportRange:
    """Translate a named report window into explicit bounds ending at ``now``.

    Windows are fixed day counts (a month is 30 days), not calendar months. ``all``
    has no bounds.
    """
    selection = ReportSelection(selection)
    days = _LOOKBACK_DAYS.get(selection)
    if days is None:
        return ExportRange()
    return ExportRange(start=now - timedelta(days=days), end=now)
