"""Display strings for dates, categories and statuses.

Only presentation goes through here. Day bucketing works on aware datetimes and
calendar dates, never on formatted text.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from app.categories import Category
from app.ranges import Status


@dataclass(frozen=True)
class DateFormatter:
    # Monday first, matching date.weekday()
    weekday_names: tuple[str, ...]
    day_pattern: str
    badge_pattern: str
    badge_joiner: str
    category_labels: dict[Category, str]
    status_labels: dict[Status, str]
    short_status_labels: dict[Status, str]

    def day_label(self, day: date) -> str:
        return day.strftime(self.day_pattern)

    def weekday_label(self, day: date) -> str:
        return self.weekday_names[day.weekday()]

    def time_label(self, moment: datetime) -> str:
        return moment.strftime("%H:%M")

    def week_badge(self, start: date, end: date) -> str:
        return f"{start.strftime(self.badge_pattern)}{self.badge_joiner}{end.strftime(self.badge_pattern)}"

    def category_label(self, category: Category) -> str:
        return self.category_labels[category]

    def status_label(self, status: Status, short: bool = False) -> str:
        labels = self.short_status_labels if short else self.status_labels
        return labels[status]


HEBREW = DateFormatter(
    weekday_names=(
        "יום שני",
        "יום שלישי",
        "יום רביעי",
        "יום חמישי",
        "יום שישי",
        "יום שבת",
        "יום ראשון",
    ),
    day_pattern="%d.%m.%y",
    badge_pattern="%d.%m",
    badge_joiner=" עד ",
    category_labels={category: category.value for category in Category},
    status_labels={
        Status.IN_RANGE: "בטווח",
        Status.ABOVE_RANGE: "מעל הטווח",
        Status.BELOW_RANGE: "מתחת לטווח",
    },
    short_status_labels={
        Status.IN_RANGE: "בטווח",
        Status.ABOVE_RANGE: "מעל",
        Status.BELOW_RANGE: "מתחת",
    },
)

ENGLISH = DateFormatter(
    weekday_names=("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"),
    day_pattern="%d/%m/%y",
    badge_pattern="%d/%m",
    badge_joiner=" - ",
    category_labels={
        Category.FASTING: "Fasting",
        Category.POST_BREAKFAST: "After breakfast",
        Category.POST_LUNCH: "After lunch",
        Category.POST_DINNER: "After dinner",
    },
    status_labels={
        Status.IN_RANGE: "in range",
        Status.ABOVE_RANGE: "above range",
        Status.BELOW_RANGE: "below range",
    },
    short_status_labels={
        Status.IN_RANGE: "in range",
        Status.ABOVE_RANGE: "above",
        Status.BELOW_RANGE: "below",
    },
)
