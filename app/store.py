from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from datetime import datetime
from pathlib import Path

from cryptography.fernet import Fernet

from app import db
from app.categories import Category
from app.migrations import load_thresholds, migrate_measurement_payload
from app.models import Measurement, new_measurement, revise_measurement, sort_newest_first
from app.ranges import GlucoseRange, normalize_thresholds, thresholds_to_json, validate_thresholds
from app.security import account_ref
from app.validation import validate_glucose_value

RANGES_SETTING = "ranges.v1"

logger = logging.getLogger(__name__)


def _check_value(value: int) -> None:
    valid, message = validate_glucose_value(value)
    if not valid:
        raise ValueError(message)


class MeasurementStore:
    """A signed-in user's readings and range settings.

    Every write goes to the database first; the in-memory lists change only once it
    succeeded, so a ``PersistenceError`` leaves the store as it was.
    """

    def __init__(
        self,
        owner: str,
        fernet: Fernet,
        measurements: list[Measurement],
        thresholds: dict[Category, GlucoseRange],
        db_path: Path = db.DB_PATH,
    ) -> None:
        self.owner = owner
        self._fernet = fernet
        self._db_path = db_path
        self.measurements = sort_newest_first(measurements)
        self.thresholds = thresholds

    @classmethod
    def load(cls, owner: str, fernet: Fernet, db_path: Path = db.DB_PATH) -> MeasurementStore:
        thresholds = load_thresholds(db.get_setting(RANGES_SETTING, owner=owner, db_path=db_path))
        measurements: list[Measurement] = []
        dropped = 0
        for row in db.load_measurements(owner, fernet, db_path=db_path):
            payload = migrate_measurement_payload(row)
            if payload is None:
                dropped += 1
                continue
            measurements.append(Measurement.from_payload(row["id"], row["recorded_at"], payload))
        if dropped:
            logger.warning("Skipped %d stored measurements with unknown categories", dropped)
        logger.info("Loaded %d measurements for account %s", len(measurements), account_ref(owner))
        return cls(owner, fernet, measurements, thresholds, db_path=db_path)

    def get(self, measurement_id: str) -> Measurement | None:
        for measurement in self.measurements:
            if measurement.id == measurement_id:
                return measurement
        return None

    def add(self, value: int, category: Category, timestamp: datetime) -> Measurement:
        _check_value(value)
        measurement = new_measurement(value, category, timestamp, self.thresholds)
        db.insert_measurement(
            self.owner,
            measurement.id,
            measurement.timestamp,
            measurement.to_payload(),
            self._fernet,
            db_path=self._db_path,
        )
        self.measurements = sort_newest_first([measurement, *self.measurements])
        logger.info("Added measurement %s", measurement.id)
        return measurement

    def update(self, measurement_id: str, value: int, category: Category, timestamp: datetime) -> Measurement:
        current = self.get(measurement_id)
        if current is None:
            raise KeyError(measurement_id)
        _check_value(value)
        revised = revise_measurement(current, value, category, timestamp, self.thresholds)
        db.update_measurement(
            self.owner,
            revised.id,
            revised.timestamp,
            revised.to_payload(),
            self._fernet,
            db_path=self._db_path,
        )
        self.measurements = sort_newest_first(
            [revised if m.id == measurement_id else m for m in self.measurements]
        )
        logger.info("Updated measurement %s", measurement_id)
        return revised

    def delete(self, measurement_id: str) -> None:
        db.delete_measurement(self.owner, measurement_id, db_path=self._db_path)
        self.measurements = [m for m in self.measurements if m.id != measurement_id]
        logger.info("Deleted measurement %s", measurement_id)

    def set_thresholds(self, thresholds: Mapping[Category, GlucoseRange]) -> tuple[bool, str]:
        """Normalize and persist new ranges. Existing readings keep their status."""
        valid, message = validate_thresholds(thresholds)
        if not valid:
            return False, message
        normalized = normalize_thresholds(thresholds)
        db.set_setting(
            RANGES_SETTING,
            json.dumps(thresholds_to_json(normalized), ensure_ascii=False),
            owner=self.owner,
            db_path=self._db_path,
        )
        self.thresholds = normalized
        logger.info("Updated range settings for account %s", account_ref(self.owner))
        return True, ""
