"""
Process configuration for the marketplace access core.

All values are read once, at startup, by load_settings() and then passed to
components through their constructors. Nothing in the core reads the
environment lazily.

Production posture (APP_ENV=production):
- DOWNLOAD_TOKEN_SECRET is required and must be at least 32 characters
- DATABASE_URL is required
- PLATFORM_FEE_PERCENT must parse and lie within [0, 100]

A missing secret is never replaced by a fixed literal. In development a
random per-process secret is generated instead, so tokens stop verifying
after a restart.
"""

import logging
import os
import secrets
from decimal import Decimal
from typing import Mapping, Optional

from pydantic import BaseModel, Field, field_validator

from marketplace_core.billing.fees import FeeValidationError, rate_from_percent

logger = logging.getLogger(__name__)

PRODUCTION_ENVIRONMENTS = frozenset({"production", "prod"})
MIN_SECRET_LENGTH = 32

DEFAULT_DATABASE_URL = "sqlite:///./marketplace.db"
DEFAULT_PLATFORM_FEE_PERCENT = "15"
DEFAULT_FILE_BASE_URL = "http://localhost:8787/files"
DEFAULT_TOKEN_LIFETIME_MINUTES = 10

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class ConfigurationError(RuntimeError):
    """Raised at startup when required configuration is missing or invalid."""

    def __init__(self, message: str, missing: Optional[list[str]] = None):
        self.missing = missing or []
        super().__init__(message)


class Settings(BaseModel):
    """Validated process settings."""

    environment: str = "development"
    database_url: str = DEFAULT_DATABASE_URL
    download_token_secret: str = Field(..., min_length=1, repr=False)
    download_token_lifetime_minutes: int = Field(DEFAULT_TOKEN_LIFETIME_MINUTES, gt=0)
    platform_fee_rate: Decimal = Decimal("0.15")
    file_base_url: str = DEFAULT_FILE_BASE_URL
    log_level: str = "INFO"

    @field_validator("platform_fee_rate")
    @classmethod
    def _rate_in_unit_interval(cls, value: Decimal) -> Decimal:
        if not Decimal(0) <= value <= Decimal(1):
            raise ValueError("platform_fee_rate must be within [0, 1]")
        return value

    @property
    def is_production(self) -> bool:
        return self.environment.lower() in PRODUCTION_ENVIRONMENTS


def _parse_fee_percent(raw: str) -> Decimal:
    try:
        return rate_from_percent(raw)
    except FeeValidationError as e:
        raise ConfigurationError(f"PLATFORM_FEE_PERCENT must be a number within [0, 100], got {raw!r}") from e


def _parse_positive_int(name: str, raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}")
    return value


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from environment variables.

    Args:
        environ: Mapping to read from. Defaults to os.environ.

    Returns:
        Validated Settings

    Raises:
        ConfigurationError: If a required value is missing or invalid
    """
    env = os.environ if environ is None else environ
    environment = env.get("APP_ENV", "development").strip() or "development"
    is_production = environment.lower() in PRODUCTION_ENVIRONMENTS

    missing = []
    secret = env.get("DOWNLOAD_TOKEN_SECRET", "")
    database_url = env.get("DATABASE_URL", "")

    if is_production:
        if not secret:
            missing.append("DOWNLOAD_TOKEN_SECRET")
        if not database_url:
            missing.append("DATABASE_URL")
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}",
                missing=missing,
            )
        if len(secret) < MIN_SECRET_LENGTH:
            raise ConfigurationError(
                f"DOWNLOAD_TOKEN_SECRET must be at least {MIN_SECRET_LENGTH} characters in production"
            )
    else:
        if not secret:
            secret = secrets.token_urlsafe(48)
            logger.warning(
                "DOWNLOAD_TOKEN_SECRET not set; using an ephemeral per-process secret",
                extra={"environment": environment},
            )
        database_url = database_url or DEFAULT_DATABASE_URL

    fee_rate = _parse_fee_percent(env.get("PLATFORM_FEE_PERCENT", DEFAULT_PLATFORM_FEE_PERCENT))
    lifetime = _parse_positive_int(
        "DOWNLOAD_TOKEN_LIFETIME_MINUTES",
        env.get("DOWNLOAD_TOKEN_LIFETIME_MINUTES", str(DEFAULT_TOKEN_LIFETIME_MINUTES)),
    )

    settings = Settings(
        environment=environment,
        database_url=database_url,
        download_token_secret=secret,
        download_token_lifetime_minutes=lifetime,
        platform_fee_rate=fee_rate,
        file_base_url=env.get("FILE_BASE_URL", DEFAULT_FILE_BASE_URL).rstrip("/"),
        log_level=env.get("LOG_LEVEL", "INFO").upper(),
    )

    logger.info(
        "Configuration validated",
        extra={
            "environment": settings.environment,
            "platform_fee_rate": str(settings.platform_fee_rate),
            "download_token_lifetime_minutes": settings.download_token_lifetime_minutes,
        },
    )
    return settings


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging with the service-wide format."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
