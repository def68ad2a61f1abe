# backend/tutorhub/core/config.py
import logging
import os
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import DEFAULT_TIMEZONE


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
    log_level: str = Field(default="INFO", description="Root log level")

    database_url: str = Field(
        default="sqlite+pysqlite:///./tutorhub.db",
        description="SQLAlchemy URL for the scheduling database",
    )
    database_echo: bool = False

    # Availability
    default_timezone: str = Field(
        default=DEFAULT_TIMEZONE,
        description="IANA zone used when a teacher profile has none stored",
    )
    availability_horizon_days: int = Field(
        default=14,
        description="Rolling number of days of bookable slots shown to students",
    )
    max_horizon_days: int = Field(
        default=90,
        description="Largest horizon a caller may request in one resolution",
    )

    # Bookings
    booking_persistence_timeout_s: float = Field(
        default=5.0,
        description="Default bound on persistence I/O when the caller supplies none",
    )
    booking_lock_redis_url: Optional[str] = Field(
        default=None,
        description="Optional Redis URL; when set, slot locks are shared across processes",
    )
    booking_lock_ttl_s: int = Field(default=30, description="TTL for distributed slot locks")
    booking_lock_namespace: str = "tutorhub"

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("availability_horizon_days", "max_horizon_days", "booking_lock_ttl_s")
    @classmethod
    def _positive_int(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be at least 1")
        return value

    @field_validator("booking_persistence_timeout_s")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("booking_persistence_timeout_s must be positive")
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @model_validator(mode="after")
    def _horizon_within_max(self) -> "Settings":
        if self.availability_horizon_days > self.max_horizon_days:
            raise ValueError("availability_horizon_days cannot exceed max_horizon_days")
        return self

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


settings = Settings()
