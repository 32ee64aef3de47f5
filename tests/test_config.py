"""
Startup configuration tests.

Production refuses to start without a signing secret or database URL.
Development never falls back to a fixed literal secret.
"""

import logging
from decimal import Decimal

import pytest
from pydantic import ValidationError

from conftest import TEST_SECRET
from marketplace_core.config import ConfigurationError, Settings, load_settings

PROD_DB = "postgresql://app:pw@db:5432/marketplace"


class TestProduction:

    def test_missing_secret_and_database_rejected(self):
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings({"APP_ENV": "production"})

        assert exc_info.value.missing == ["DOWNLOAD_TOKEN_SECRET", "DATABASE_URL"]

    def test_missing_secret_rejected(self):
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings({"APP_ENV": "prod", "DATABASE_URL": PROD_DB})
        assert exc_info.value.missing == ["DOWNLOAD_TOKEN_SECRET"]

    def test_short_secret_rejected(self):
        with pytest.raises(ConfigurationError, match="at least 32"):
            load_settings({
                "APP_ENV": "production",
                "DATABASE_URL": PROD_DB,
                "DOWNLOAD_TOKEN_SECRET": "too-short",
            })

    def test_valid_production_settings(self):
        settings = load_settings({
            "APP_ENV": "Production",
            "DATABASE_URL": PROD_DB,
            "DOWNLOAD_TOKEN_SECRET": TEST_SECRET,
            "FILE_BASE_URL": "https://cdn.example.com/files/",
            "LOG_LEVEL": "warning",
        })

        assert settings.is_production is True
        assert settings.database_url == PROD_DB
        assert settings.download_token_secret == TEST_SECRET
        assert settings.file_base_url == "https://cdn.example.com/files"
        assert settings.log_level == "WARNING"

    def test_secret_not_in_repr(self):
        settings = Settings(download_token_secret=TEST_SECRET)
        assert TEST_SECRET not in repr(settings)


class TestDevelopment:

    def test_missing_secret_generates_ephemeral_secret(self, caplog):
        with caplog.at_level(logging.WARNING, logger="marketplace_core.config"):
            first = load_settings({})
        second = load_settings({})

        assert len(first.download_token_secret) >= 32
        assert first.download_token_secret != second.download_token_secret
        assert any("ephemeral" in r.getMessage() for r in caplog.records)

    def test_defaults(self):
        settings = load_settings({"DOWNLOAD_TOKEN_SECRET": TEST_SECRET})

        assert settings.is_production is False
        assert settings.download_token_lifetime_minutes == 10
        assert settings.platform_fee_rate == Decimal("0.15")
        assert settings.database_url.startswith("sqlite")

    def test_short_secret_allowed_outside_production(self):
        assert load_settings({"DOWNLOAD_TOKEN_SECRET": "dev"}).download_token_secret == "dev"


class TestParsing:

    @pytest.mark.parametrize("raw,expected", [("15", "0.15"), ("0", "0"), ("100", "1"), ("2.5", "0.025")])
    def test_fee_percent(self, raw, expected):
        settings = load_settings({"DOWNLOAD_TOKEN_SECRET": TEST_SECRET, "PLATFORM_FEE_PERCENT": raw})
        assert settings.platform_fee_rate == Decimal(expected)

    @pytest.mark.parametrize("raw", ["abc", "-1", "100.5", ""])
    def test_invalid_fee_percent(self, raw):
        with pytest.raises(ConfigurationError, match="PLATFORM_FEE_PERCENT"):
            load_settings({"DOWNLOAD_TOKEN_SECRET": TEST_SECRET, "PLATFORM_FEE_PERCENT": raw})

    @pytest.mark.parametrize("raw", ["0", "-5", "ten"])
    def test_invalid_token_lifetime(self, raw):
        with pytest.raises(ConfigurationError, match="DOWNLOAD_TOKEN_LIFETIME_MINUTES"):
            load_settings({"DOWNLOAD_TOKEN_SECRET": TEST_SECRET, "DOWNLOAD_TOKEN_LIFETIME_MINUTES": raw})

    def test_settings_rejects_rate_above_one(self):
        with pytest.raises(ValidationError):
            Settings(download_token_secret=TEST_SECRET, platform_fee_rate=Decimal("1.5"))
