import pytest

from app.categories import CATEGORIES, Category
from app.ranges import (
    DEFAULT_RANGES,
    GlucoseRange,
    Status,
    classify,
    normalize_thresholds,
    thresholds_from_json,
    thresholds_to_json,
    validate_thresholds,
)


@pytest.mark.parametrize("category", CATEGORIES)
def test_bounds_are_inclusive(category):
    bounds = DEFAULT_RANGES[category]
    assert classify(bounds.lower, category) == Status.IN_RANGE
    assert classify(bounds.upper, category) == Status.IN_RANGE
    assert classify(bounds.lower - 1, category) == Status.BELOW_RANGE
    assert classify(bounds.upper + 1, category) == Status.ABOVE_RANGE


def test_missing_category_falls_back_to_default():
    assert classify(96, Category.FASTING, {}) == Status.ABOVE_RANGE
    assert classify(96, Category.POST_LUNCH, {Category.FASTING: GlucoseRange(70, 90)}) == Status.IN_RANGE


def test_custom_thresholds_are_used():
    custom = {Category.FASTING: GlucoseRange(lower=75, upper=90)}
    assert classify(91, Category.FASTING, custom) == Status.ABOVE_RANGE
    assert classify(74, Category.FASTING, custom) == Status.BELOW_RANGE


def test_normalize_never_loosens_defaults():
    loose = {
        Category.FASTING: GlucoseRange(lower=50, upper=130),
        Category.POST_BREAKFAST: GlucoseRange(lower=80, upper=110),
    }
    normalized = normalize_thresholds(loose)

    assert normalized[Category.FASTING] == GlucoseRange(lower=70, upper=95)
    assert normalized[Category.POST_BREAKFAST] == GlucoseRange(lower=80, upper=110)
    assert normalized[Category.POST_DINNER] == DEFAULT_RANGES[Category.POST_DINNER]
    assert list(normalized) == list(CATEGORIES)


def test_normalize_is_idempotent():
    once = normalize_thresholds({Category.POST_LUNCH: GlucoseRange(lower=60, upper=115)})
    assert normalize_thresholds(once) == once
    assert normalize_thresholds(DEFAULT_RANGES) == DEFAULT_RANGES


def test_validate_rejects_collapsed_range():
    ok, message = validate_thresholds({Category.POST_LUNCH: GlucoseRange(lower=120, upper=150)})
    assert not ok
    assert Category.POST_LUNCH.value in message

    ok, _ = validate_thresholds({Category.POST_LUNCH: GlucoseRange(lower=75, upper=115)})
    assert ok


def test_json_shape_accepts_legacy_keys_and_skips_garbage():
    parsed = thresholds_from_json(
        {
            "Fasting": {"lower": 72, "upper": 92},
            "Snack": {"lower": 1, "upper": 2},
            Category.POST_DINNER.value: {"lower": "x"},
        }
    )
    assert parsed == {Category.FASTING: GlucoseRange(lower=72, upper=92)}
    assert thresholds_to_json(parsed) == {Category.FASTING.value: {"lower": 72, "upper": 92}}
