"""Load-time clean-up of stored data written by older versions of the app."""

from __future__ import annotations

import json
import logging
from typing import Any

from app.categories import Category
from app.ranges import DEFAULT_RANGES, GlucoseRange, Status, classify, normalize_thresholds, thresholds_from_json

logger = logging.getLogger(__name__)


def load_thresholds(raw: str | None) -> dict[Category, GlucoseRange]:
    if not raw:
        return dict(DEFAULT_RANGES)
    try:
        stored = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Stored range settings are not valid JSON, using defaults")
        return dict(DEFAULT_RANGES)
    if not isinstance(stored, dict):
        return dict(DEFAULT_RANGES)
    return normalize_thresholds({**DEFAULT_RANGES, **thresholds_from_json(stored)})


def migrate_measurement_payload(payload: dict[str, Any]) -> dict[str, Any] | None:
    """Remap legacy category keys and fill in a missing status.

    Returns None for rows whose category is not one of the current four.
    """
    category = Category.parse(str(payload.get("category", "")))
    if category is None:
        return None

    migrated = {**payload, "category": category.value}
    try:
        Status(migrated.get("status"))
    except ValueError:
        migrated["status"] = classify(int(migrated["value"]), category, DEFAULT_RANGES).value
    return migrated
