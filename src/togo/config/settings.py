"""
Togo settings configuration

Every value here is read once into a TogoSettings instance and handed to the
components that need it. Nothing else in the package reads the environment.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Fallback when DEFAULT_TASK_LIMIT_PER_DAY is missing or unusable
DEFAULT_TASK_LIMIT_PER_DAY = 5


def _default_database_url() -> str:
    """SQLite file under <cwd>/.data, created on first use"""
    data_dir = Path.cwd() / ".data"
    data_dir.mkdir(parents=True, exist_ok=True)
    return f"sqlite+aiosqlite:///{data_dir / 'togo.db'}"


class TogoSettings(BaseSettings):
    """Togo application settings"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: Optional[str] = None
    sql_echo: bool = False

    # Quota
    default_task_limit_per_day: int = DEFAULT_TASK_LIMIT_PER_DAY
    timezone: str = Field(
        default="UTC",
        validation_alias=AliasChoices("TOGO_TIMEZONE", "timezone"),
    )
    task_creation_isolation_level: Optional[str] = None
    task_creation_retries: int = 3

    # Tokens
    jwt_secret_key: str = Field(
        default="togo-dev-secret-change-in-production",
        validation_alias=AliasChoices("SECRET_KEY", "jwt_secret_key"),
    )
    jwt_algorithm: str = "HS256"
    token_ttl_hours: int = 24

    # Bootstrap admin account (created on init-db when set)
    admin_email: Optional[str] = None

    log_level: str = "INFO"

    @field_validator("default_task_limit_per_day", mode="before")
    @classmethod
    def _coerce_task_limit(cls, value: Any) -> int:
        try:
            limit = int(value)
        except (TypeError, ValueError):
            return DEFAULT_TASK_LIMIT_PER_DAY
        return limit if limit >= 0 else DEFAULT_TASK_LIMIT_PER_DAY

    @field_validator("timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"unknown timezone: {value}") from e
        return value

    @field_validator("task_creation_retries")
    @classmethod
    def _check_retries(cls, value: int) -> int:
        if value < 0:
            raise ValueError("task_creation_retries must be >= 0")
        return value

    def model_post_init(self, __context: object) -> None:
        if not self.database_url:
            self.database_url = _default_database_url()

    @property
    def tzinfo(self) -> ZoneInfo:
        """Timezone used to bucket tasks into calendar days"""
        return ZoneInfo(self.timezone)


@lru_cache(maxsize=1)
def get_settings() -> TogoSettings:
    """Process-wide settings instance"""
    return TogoSettings()
