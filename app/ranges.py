from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from app.categories import CATEGORIES, Category


class Status(str, Enum):
    BELOW_RANGE = "belowRange"
    IN_RANGE = "inRange"
    ABOVE_RANGE = "aboveRange"


@dataclass(frozen=True)
class GlucoseRange:
    lower: int
    upper: int


RangeThresholds = Mapping[Category, GlucoseRange]

DEFAULT_RANGES: dict[Category, GlucoseRange] = {
    Category.FASTING: GlucoseRange(lower=70, upper=95),
    Category.POST_BREAKFAST: GlucoseRange(lower=70, upper=120),
    Category.POST_LUNCH: GlucoseRange(lower=70, upper=120),
    Category.POST_DINNER: GlucoseRange(lower=70, upper=120),
}


def classify(value: int, category: Category, thresholds: RangeThresholds = DEFAULT_RANGES) -> Status:
    bounds = thresholds.get(category) or DEFAULT_RANGES[category]
    if value < bounds.lower:
        return Status.BELOW_RANGE
    if value > bounds.upper:
        return Status.ABOVE_RANGE
    return Status.IN_RANGE


def normalize_thresholds(thresholds: RangeThresholds) -> dict[Category, GlucoseRange]:
    """Clamp every category's pair inside the shipped defaults.

    Thresholds may be tightened but never loosened: the lower bound is raised to at
    least the default lower bound and the upper bound is cut to at most the default
    upper bound. Categories without a pair get the default.
    """
    normalized: dict[Category, GlucoseRange] = {}
    for category in CATEGORIES:
        default = DEFAULT_RANGES[category]
        current = thresholds.get(category) or default
        normalized[category] = GlucoseRange(
            lower=max(current.lower, default.lower),
            upper=min(current.upper, default.upper),
        )
    return normalized


def validate_thresholds(thresholds: RangeThresholds) -> tuple[bool, str]:
    for category, bounds in normalize_thresholds(thresholds).items():
        if bounds.lower >= bounds.upper:
            return False, f"בקטגוריה '{category.value}' הגבול התחתון חייב להיות קטן מהגבול העליון."
    return True, ""


def thresholds_to_json(thresholds: RangeThresholds) -> dict[str, dict[str, int]]:
    return {
        category.value: {"lower": int(bounds.lower), "upper": int(bounds.upper)}
        for category, bounds in thresholds.items()
    }


def thresholds_from_json(raw: Mapping[str, Any]) -> dict[Category, GlucoseRange]:
    """Read the stored settings shape; unknown keys and malformed pairs are skipped."""
    parsed: dict[Category, GlucoseRange] = {}
    for key, value in raw.items():
        category = Category.parse(key)
        if category is None or not isinstance(value, Mapping):
            continue
        try:
            parsed[category] = GlucoseRange(lower=int(value["lower"]), upper=int(value["upper"]))
        except (KeyError, TypeError, ValueError):
            continue
    return parsed
