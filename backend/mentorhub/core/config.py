# backend/mentorhub/core/config.py
import logging
import os
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import pytz

from .enums import ExceptionOverlapPolicy


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


class Settings(BaseSettings):
    environment: Literal["development", "test", "staging", "production"] = Field(
        default="development",
        description="Deployment environment name",
    )
    database_url: str = Field(
        default="sqlite:///./mentorhub.db",
        description="SQLAlchemy database URL",
    )
    database_echo: bool = Field(default=False, description="Echo SQL statements to the log")
    log_level: str = Field(default="INFO", description="Root log level")

    # Availability engine
    default_timezone: str = Field(
        default="UTC",
        description="IANA timezone used for schedules created without one",
    )
    slot_step_minutes: int = Field(
        default=30,
        ge=5,
        le=120,
        description="Stride between candidate booking slots",
    )
    slot_search_max_days: int = Field(
        default=62,
        ge=1,
        le=366,
        description="Largest date range accepted by the bookable slots query",
    )
    allow_past_exceptions: bool = Field(
        default=False,
        description="Allow exceptions that start before today in the mentor's timezone",
    )
    exception_overlap_policy: ExceptionOverlapPolicy = Field(
        default=ExceptionOverlapPolicy.REJECT,
        description="Reject overlapping exception ranges or let the newest one win",
    )

    # Monitoring
    slow_operation_threshold_seconds: float = Field(
        default=1.0,
        description="Service operations slower than this are logged as warnings",
    )
    metrics_enabled: bool = Field(default=True, description="Expose /metrics")

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("default_timezone")
    @classmethod
    def validate_default_timezone(cls, v: str) -> str:
        """Reject timezone names unknown to the tz database."""
        if v not in pytz.all_timezones_set:
            raise ValueError(f"Unknown timezone: {v}")
        return v


settings = Settings()
