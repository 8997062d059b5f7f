from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import tzinfo
from pathlib import Path
from typing import Any

from dateutil import tz

DEFAULT_PEPPER = "change-me-before-production"
DEFAULT_TIMEZONE = "Asia/Jerusalem"


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class Settings:
    db_path: Path
    pepper: str
    timezone_name: str
    pdf_font_path: Path | None
    log_level: str

    @property
    def timezone(self) -> tzinfo:
        zone = tz.gettz(self.timezone_name)
        if zone is None:
            raise ConfigError(f"Unknown timezone: {self.timezone_name}")
        return zone


def load_settings(secrets: Mapping[str, Any] | None = None, environ: Mapping[str, str] | None = None) -> Settings:
    """Build settings from environment variables, falling back to ``secrets``."""
    environ = os.environ if environ is None else environ
    secrets = secrets or {}

    def lookup(name: str, default: str | None = None) -> str | None:
        value = environ.get(name)
        if value:
            return value
        value = secrets.get(name)
        if value:
            return str(value)
        return default

    font = lookup("SUGARMAMA_PDF_FONT")
    settings = Settings(
        db_path=Path(lookup("SUGARMAMA_DB_PATH", "data/sugarmama.db")),
        pepper=lookup("APP_PEPPER", DEFAULT_PEPPER),
        timezone_name=lookup("SUGARMAMA_TIMEZONE", DEFAULT_TIMEZONE),
        pdf_font_path=Path(font) if font else None,
        log_level=lookup("SUGARMAMA_LOG_LEVEL", "INFO").upper(),
    )
    # fail early on a bad zone name
    settings.timezone
    return settings
