# backend/fitstudio/core/config.py
import logging
import os
from pathlib import Path
from typing import Annotated, Dict, List

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug("[CONFIG] Looking for .env at: %s (exists=%s)", env_path, env_path.exists())
    load_dotenv(env_path)


def _split_csv(value: object, field_name: str) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [token.strip() for token in value.split(",") if token.strip()]
    if isinstance(value, (list, tuple, set)):
        return [str(token).strip() for token in value if str(token).strip()]
    raise ValueError(f"{field_name} must be a comma-separated string or list")


class Settings(BaseSettings):
    environment: str = "development"
    log_level: str = "INFO"

    # Database
    database_url: str = Field(
        default="sqlite:///./fitstudio.db",
        description="SQLAlchemy URL; PostgreSQL in production, SQLite for local dev",
    )
    sql_echo: bool = False
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_lock_timeout_seconds: int = Field(
        default=30,
        ge=1,
        description="SQLite busy timeout while another writer holds the database",
    )

    # Studio calendar
    studio_timezone: str = Field(
        default="Africa/Nairobi",
        description="Timezone in which schedule dates and slot times are expressed",
    )

    # Admission
    category_capacity_limits: Dict[str, int] = Field(
        default_factory=lambda: {"pilates": 5, "yoga": 10},
        description="Per-category ceiling applied on top of a session's own capacity (JSON)",
    )
    default_session_capacity: int = Field(default=1, ge=1)
    instant_confirm_payment_methods: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["mpesa"],
        description="Payment methods whose bookings start completed when a reference is given",
    )

    # Status transitions
    completion_loyalty_points: int = Field(default=10, ge=0)
    payment_confirmation_prefixes: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["OK-", "PAID-", "TXN-", "CONF-"],
        description="Reference prefixes that count as a verified payment",
    )

    # Cancellation
    client_cancellation_window_hours: int = Field(default=24, ge=0)

    redis_url: str = "redis://localhost:6379"

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("instant_confirm_payment_methods", mode="before")
    @classmethod
    def _parse_payment_methods(cls, value: object) -> list[str]:
        return [token.lower() for token in _split_csv(value, "instant_confirm_payment_methods")]

    @field_validator("payment_confirmation_prefixes", mode="before")
    @classmethod
    def _parse_payment_prefixes(cls, value: object) -> list[str]:
        return _split_csv(value, "payment_confirmation_prefixes")

    @field_validator("category_capacity_limits")
    @classmethod
    def _normalize_category_limits(cls, value: Dict[str, int]) -> Dict[str, int]:
        normalized: Dict[str, int] = {}
        for category, limit in value.items():
            if int(limit) <= 0:
                raise ValueError(f"category limit for {category!r} must be positive")
            normalized[category.strip().lower()] = int(limit)
        return normalized

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    def category_limit(self, category: str | None) -> int | None:
        """Return the configured ceiling for a session category, if any."""
        if not category:
            return None
        return self.category_capacity_limits.get(category.strip().lower())


settings = Settings()
