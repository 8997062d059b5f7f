import json

from app.categories import Category
from app.migrations import load_thresholds, migrate_measurement_payload
from app.ranges import DEFAULT_RANGES, GlucoseRange, Status


def test_missing_or_broken_settings_give_defaults():
    assert load_thresholds(None) == DEFAULT_RANGES
    assert load_thresholds("{not json") == DEFAULT_RANGES
    assert load_thresholds("[]") == DEFAULT_RANGES


def test_legacy_setting_keys_are_remapped_and_normalized():
    stored = json.dumps({"Fasting": {"lower": 60, "upper": 90}, "After Dinner": {"lower": 80, "upper": 140}})
    thresholds = load_thresholds(stored)

    assert thresholds[Category.FASTING] == GlucoseRange(lower=70, upper=90)
    assert thresholds[Category.POST_DINNER] == GlucoseRange(lower=80, upper=120)
    assert thresholds[Category.POST_LUNCH] == DEFAULT_RANGES[Category.POST_LUNCH]


def test_legacy_measurement_gets_new_category_and_status():
    migrated = migrate_measurement_payload({"value": 130, "unit": "mg/dL", "category": "After Breakfast"})
    assert migrated["category"] == Category.POST_BREAKFAST.value
    assert migrated["status"] == Status.ABOVE_RANGE.value

    before_sleep = migrate_measurement_payload({"value": 100, "category": "Before Sleep", "status": "inRange"})
    assert before_sleep["category"] == Category.POST_DINNER.value


def test_stored_status_is_kept_as_written():
    migrated = migrate_measurement_payload({"value": 100, "category": Category.FASTING.value, "status": "inRange"})
    assert migrated["status"] == "inRange"


def test_unknown_category_is_dropped():
    assert migrate_measurement_payload({"value": 100, "category": "Snack"}) is None
