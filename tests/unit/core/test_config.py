import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from recordwatch.core.config import Settings, get_settings


def test_settings_defaults():
    """Test that settings load with correct defaults."""
    get_settings.cache_clear()

    with patch.dict(os.environ, {}, clear=True):
        settings = Settings(_env_file=None)

    assert settings.app_name == "recordwatch"
    assert settings.environment == "development"
    assert settings.tick_interval_ms == 17
    assert settings.tick_interval == pytest.approx(0.017)
    assert settings.log_level == "INFO"
    assert settings.log_format == "json"
    assert settings.is_development is True
    assert settings.is_production is False
    assert settings.is_testing is False


def test_settings_env_override():
    """Test that environment variables override defaults."""
    get_settings.cache_clear()

    with patch.dict(os.environ, {
        "RECORDWATCH_ENVIRONMENT": "production",
        "RECORDWATCH_TICK_INTERVAL_MS": "250",
        "RECORDWATCH_LOG_FORMAT": "console",
    }):
        settings = Settings(_env_file=None)

        assert settings.environment == "production"
        assert settings.tick_interval_ms == 250
        assert settings.tick_interval == pytest.approx(0.25)
        assert settings.log_format == "console"
        assert settings.is_production is True


def test_log_level_is_normalized():
    """Test that log levels are accepted in any case."""
    with patch.dict(os.environ, {"RECORDWATCH_LOG_LEVEL": "debug"}):
        settings = Settings(_env_file=None)

    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize("value", [0, -5, 60_001])
def test_tick_interval_validation(value):
    """Test that tick intervals outside 1..60000 ms are rejected."""
    with pytest.raises(ValidationError):
        Settings(_env_file=None, tick_interval_ms=value)


def test_invalid_environment_rejected():
    """Test that unknown environments are rejected."""
    with pytest.raises(ValidationError):
        Settings(_env_file=None, environment="staging")


def test_get_settings_is_cached():
    """Test that get_settings returns the same instance until cleared."""
    get_settings.cache_clear()

    first = get_settings()
    assert get_settings() is first

    get_settings.cache_clear()
    assert get_settings() is not first
