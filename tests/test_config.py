from pathlib import Path

import pytest

from app.config import DEFAULT_PEPPER, ConfigError, load_settings


def test_defaults():
    settings = load_settings(secrets={}, environ={})

    assert settings.db_path == Path("data/sugarmama.db")
    assert settings.pepper == DEFAULT_PEPPER
    assert settings.timezone_name == "Asia/Jerusalem"
    assert settings.pdf_font_path is None
    assert settings.log_level == "INFO"


def test_environment_wins_over_secrets():
    settings = load_settings(
        secrets={"APP_PEPPER": "from-secrets", "SUGARMAMA_TIMEZONE": "Europe/Madrid"},
        environ={"APP_PEPPER": "from-env", "SUGARMAMA_LOG_LEVEL": "debug"},
    )

    assert settings.pepper == "from-env"
    assert settings.timezone_name == "Europe/Madrid"
    assert settings.log_level == "DEBUG"


def test_unknown_timezone_is_rejected():
    with pytest.raises(ConfigError):
        load_settings(environ={"SUGARMAMA_TIMEZONE": "Mars/Olympus_Mons"})
