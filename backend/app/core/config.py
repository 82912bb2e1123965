# backend/app/core/config.py
import logging
import os
from pathlib import Path
from typing import Annotated, Literal

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .constants import (
    DEFAULT_ALWAYS_AVAILABLE_UNIT_IDS,
    DEFAULT_PIPELINES_WITHOUT_DATES,
    DEFAULT_PIPELINES_WITHOUT_ROOM,
)


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
    logger.debug("[CONFIG] Looking for .env at: %s (exists=%s)", env_path, env_path.exists())
    load_dotenv(env_path)


def _split_csv(value: object) -> object:
    if value is None:
        return []
    if isinstance(value, str):
        return [token.strip() for token in value.split(",") if token.strip()]
    return value


class Settings(BaseSettings):
    environment: Literal["development", "testing", "staging", "production"] = Field(
        default="development", description="Deployment environment name"
    )
    log_level: str = Field(default="INFO", description="Root log level for the API process")

    database_url: str = Field(
        default="sqlite:///./training_scheduler.db",
        description="SQLAlchemy URL of the scheduling database",
    )
    database_echo: bool = Field(default=False, description="Echo SQL statements (debug only)")

    # Calendar semantics
    display_timezone: str = Field(
        default="Europe/Madrid",
        description="Timezone used to combine dates with times of day and to bucket calendar days",
    )
    default_start_time: str = Field(
        default="09:00", description="Start time of day used when nothing else is configured"
    )
    default_end_time: str = Field(
        default="11:00",
        description="End time of day used when neither an end nor a start is configured",
    )
    minimum_booking_minutes: int = Field(
        default=60,
        ge=1,
        description="Duration applied when a resolved end is not strictly after its start",
    )
    availability_max_range_days: int = Field(
        default=120, ge=1, description="Largest range accepted by availability endpoints"
    )

    # Resource policy
    always_available_unit_ids: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_ALWAYS_AVAILABLE_UNIT_IDS),
        description="Mobile unit ids that never block availability",
    )
    pipelines_allow_scheduled_without_dates: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_PIPELINES_WITHOUT_DATES),
        description="Deal pipelines whose sessions may be scheduled without concrete dates",
    )
    pipelines_allow_scheduled_without_room: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_PIPELINES_WITHOUT_ROOM),
        description="Deal pipelines whose sessions do not need a room to be scheduled",
    )

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator(
        "always_available_unit_ids",
        "pipelines_allow_scheduled_without_dates",
        "pipelines_allow_scheduled_without_room",
        mode="before",
    )
    @classmethod
    def _parse_csv_lists(cls, value: object) -> object:
        return _split_csv(value)

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper() or "INFO"
        return value

    @property
    def is_testing(self) -> bool:
        return self.environment == "testing" or is_running_tests()


settings = Settings()
