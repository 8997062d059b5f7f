from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone, tzinfo
from typing import Any

from dateutil import parser as date_parser

from app.categories import Category
from app.ranges import DEFAULT_RANGES, RangeThresholds, Status, classify

UNIT = "mg/dL"


def parse_timestamp(raw: str, local_tz: tzinfo | None = None) -> datetime:
    """Parse an ISO-8601 string into an aware datetime.

    Naive values are read as local wall-clock time in ``local_tz`` (UTC when no zone
    is given).
    """
    parsed = date_parser.isoparse(raw)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=local_tz or timezone.utc)
    return parsed


def to_instant_string(moment: datetime) -> str:
    if moment.tzinfo is None:
        raise ValueError("timestamp must be timezone-aware")
    return moment.astimezone(timezone.utc).isoformat()


@dataclass(frozen=True)
class Measurement:
    id: str
    value: int
    timestamp: str
    category: Category
    status: Status
    unit: str = UNIT

    @property
    def instant(self) -> datetime:
        return parse_timestamp(self.timestamp)

    def to_payload(self) -> dict[str, Any]:
        return {
            "value": self.value,
            "unit": self.unit,
            "category": self.category.value,
            "status": self.status.value,
        }

    @classmethod
    def from_payload(cls, measurement_id: str, timestamp: str, payload: dict[str, Any]) -> Measurement:
        return cls(
            id=measurement_id,
            value=int(payload["value"]),
            timestamp=timestamp,
            category=Category(payload["category"]),
            status=Status(payload["status"]),
            unit=payload.get("unit", UNIT),
        )


def new_measurement(
    value: int,
    category: Category,
    timestamp: datetime,
    thresholds: RangeThresholds = DEFAULT_RANGES,
) -> Measurement:
    return Measurement(
        id=str(uuid.uuid4()),
        value=value,
        timestamp=to_instant_string(timestamp),
        category=category,
        status=classify(value, category, thresholds),
    )


def revise_measurement(
    measurement: Measurement,
    value: int,
    category: Category,
    timestamp: datetime,
    thresholds: RangeThresholds,
) -> Measurement:
    """Explicit edit: the cached status is recomputed against ``thresholds``."""
    return replace(
        measurement,
        value=value,
        category=category,
        timestamp=to_instant_string(timestamp),
        status=classify(value, category, thresholds),
    )


def sort_newest_first(measurements: list[Measurement]) -> list[Measurement]:
    return sorted(measurements, key=lambda m: m.instant, reverse=True)
