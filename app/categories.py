from __future__ import annotations

from enum import Enum


class Category(str, Enum):
    FASTING = "צום"
    POST_BREAKFAST = "אחרי ארוחת בוקר"
    POST_LUNCH = "אחרי ארוחת צהריים"
    POST_DINNER = "אחרי ארוחת ערב"

    @classmethod
    def parse(cls, raw: str) -> Category | None:
        """Return the category for a stored key, legacy English keys included."""
        if raw in LEGACY_CATEGORY_KEYS:
            return LEGACY_CATEGORY_KEYS[raw]
        try:
            return cls(raw)
        except ValueError:
            return None


CATEGORIES: tuple[Category, ...] = tuple(Category)

LEGACY_CATEGORY_KEYS: dict[str, Category] = {
    "Fasting": Category.FASTING,
    "After Breakfast": Category.POST_BREAKFAST,
    "After Lunch": Category.POST_LUNCH,
    "After Dinner": Category.POST_DINNER,
    "Before Sleep": Category.POST_DINNER,
}
