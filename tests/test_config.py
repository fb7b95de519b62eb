"""
Tests for Settings loading and validation.

CHANGELOG:
- 2026-10-18: Initial creation
"""

import pytest
from pydantic import ValidationError

from pumpwatch.config import Settings


class TestDefaults:
    """Only DATABASE_URL is required; everything else has a default."""

    def test_defaults(self, _test_env: dict[str, str], monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("DEVICES_FILE")
        settings = Settings()

        assert settings.database_url == _test_env["DATABASE_URL"]
        assert settings.redis_url == ""
        assert settings.session_timeout_s == 60
        assert settings.discharge_coefficient == 1.0
        assert settings.discard_zero_duration is False
        assert settings.dedup_samples is True
        assert settings.sweep_interval_s == 0
        assert settings.devices_file == ""
        assert settings.event_page_size == 50
        assert settings.cache_ttl_s == 30
        assert settings.log_level == "INFO"

    def test_database_url_required(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("DATABASE_URL")
        with pytest.raises(ValidationError):
            Settings()

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SESSION_TIMEOUT_S", "120")
        monkeypatch.setenv("DISCHARGE_COEFFICIENT", "0.5")
        monkeypatch.setenv("DISCARD_ZERO_DURATION", "true")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        settings = Settings()

        assert settings.session_timeout_s == 120
        assert settings.discharge_coefficient == 0.5
        assert settings.discard_zero_duration is True
        assert settings.log_level == "DEBUG"


class TestValidation:
    """Out-of-range values are rejected at startup."""

    @pytest.mark.parametrize(
        ("var", "value"),
        [
            ("SESSION_TIMEOUT_S", "0"),
            ("DISCHARGE_COEFFICIENT", "-0.1"),
            ("SWEEP_INTERVAL_S", "-5"),
            ("EVENT_PAGE_SIZE", "0"),
            ("EVENT_PAGE_SIZE", "1001"),
            ("LOG_LEVEL", "LOUD"),
        ],
    )
    def test_rejected(self, monkeypatch: pytest.MonkeyPatch, var: str, value: str) -> None:
        monkeypatch.setenv(var, value)
        with pytest.raises(ValidationError, match=var):
            Settings()
