from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    log_level: str = Field(default="INFO", validation_alias="WEEKPLAN_LOG_LEVEL")
    log_file: str | None = Field(default=None, validation_alias="WEEKPLAN_LOG_FILE")
    log_rotation: str = Field(default="10 MB", validation_alias="WEEKPLAN_LOG_ROTATION")
    log_retention: str = Field(default="7 days", validation_alias="WEEKPLAN_LOG_RETENTION")
    # Write the file sink as JSON lines (one record per line) instead of text
    log_json: bool = Field(default=False, validation_alias="WEEKPLAN_LOG_JSON")

    # IANA zone used to normalize timestamps to local midnight; None = host local time
    plan_timezone: str | None = Field(default=None, validation_alias="WEEKPLAN_PLAN_TIMEZONE")

    # Upper clamp for current week when a plan carries no usable total_weeks
    default_total_weeks: int = Field(default=12, ge=1, validation_alias="WEEKPLAN_DEFAULT_TOTAL_WEEKS")

    generator_timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        validation_alias="WEEKPLAN_GENERATOR_TIMEOUT_SECONDS",
    )

    redis_url: str = Field(default="redis://localhost:6379/0", validation_alias="WEEKPLAN_REDIS_URL")
    redis_key_prefix: str = Field(default="weekplan", validation_alias="WEEKPLAN_REDIS_KEY_PREFIX")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return value.upper()

    @field_validator("plan_timezone")
    @classmethod
    def validate_timezone(cls, value: str | None) -> str | None:
        if not value:
            return None
        try:
            ZoneInfo(value)
        except ZoneInfoNotFoundError as e:
            raise ValueError(f"Unknown timezone for WEEKPLAN_PLAN_TIMEZONE: {value}") from e
        return value

    @property
    def tzinfo(self) -> ZoneInfo | None:
        """Zone for local-midnight normalization, or None for host local time."""
        return ZoneInfo(self.plan_timezone) if self.plan_timezone else None


settings = Settings()
