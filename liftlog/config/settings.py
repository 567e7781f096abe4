from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_database_url() -> str:
    """Get the default database URL for the external activity store.

    Uses an absolute sqlite path next to the project root so the store resolves
    to the same file regardless of the working directory.
    """
    db_path = Path(__file__).parent.parent.parent / "liftlog.db"
    return f"sqlite:///{db_path.resolve()}"


class Settings(BaseSettings):
    database_url: str = Field(default_factory=get_database_url, validation_alias="LIFTLOG_DATABASE_URL")
    training_log_path: str = Field(default="training_data.json", validation_alias="LIFTLOG_TRAINING_LOG_PATH")
    timezone: str = Field(default="UTC", validation_alias="LIFTLOG_TIMEZONE")
    log_level: str = Field(default="INFO", validation_alias="LIFTLOG_LOG_LEVEL")
    log_file: str | None = Field(default=None, validation_alias="LIFTLOG_LOG_FILE")
    log_rotation: str = Field(default="10 MB", validation_alias="LIFTLOG_LOG_ROTATION")
    log_retention: str = Field(default="7 days", validation_alias="LIFTLOG_LOG_RETENTION")

    timeline_window_days: int = Field(default=28, ge=1, le=365, validation_alias="LIFTLOG_TIMELINE_WINDOW_DAYS")
    sample_cadence_minutes: int = Field(default=60, ge=5, le=1440, validation_alias="LIFTLOG_SAMPLE_CADENCE_MINUTES")
    refresh_interval_seconds: float = Field(default=60.0, gt=0, validation_alias="LIFTLOG_REFRESH_INTERVAL_SECONDS")
    retention_days: int = Field(default=14, validation_alias="LIFTLOG_RETENTION_DAYS")
    sync_lookback_days: int = Field(default=7, ge=1, le=90, validation_alias="LIFTLOG_SYNC_LOOKBACK_DAYS")

    # Readiness calibration defaults (user-facing settings)
    recovery_speed_multiplier: float = Field(default=1.0, gt=0, validation_alias="LIFTLOG_RECOVERY_SPEED_MULTIPLIER")
    default_rpe: float = Field(default=7.0, validation_alias="LIFTLOG_DEFAULT_RPE")
    training_experience: str = Field(default="INTERMEDIATE", validation_alias="LIFTLOG_TRAINING_EXPERIENCE")
    strict_run_blocking: bool = Field(default=False, validation_alias="LIFTLOG_STRICT_RUN_BLOCKING")
    allow_running_on_tired_legs: bool = Field(default=False, validation_alias="LIFTLOG_ALLOW_RUNNING_ON_TIRED_LEGS")
    ignore_fatigue_on_weekends: bool = Field(default=False, validation_alias="LIFTLOG_IGNORE_FATIGUE_ON_WEEKENDS")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate that log level is one of the standard logging levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            logger.warning(f"Invalid LOG_LEVEL '{value}'. Valid levels are: {', '.join(valid_levels)}. Defaulting to INFO.")
            return "INFO"
        return upper_value

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Validate the IANA timezone name used for calendar-day bucketing."""
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Unknown LIFTLOG_TIMEZONE '{value}'. Falling back to UTC.")
            return "UTC"
        return value

    @field_validator("retention_days")
    @classmethod
    def clamp_retention_days(cls, value: int) -> int:
        """Clamp retention to 1..365 days."""
        if value < 1 or value > 365:
            clamped = min(max(value, 1), 365)
            logger.warning(f"LIFTLOG_RETENTION_DAYS={value} out of range, clamped to {clamped}")
            return clamped
        return value

    @field_validator("training_experience")
    @classmethod
    def validate_training_experience(cls, value: str) -> str:
        """Validate the training experience level."""
        upper_value = value.upper()
        if upper_value not in {"NOVICE", "INTERMEDIATE", "ADVANCED"}:
            logger.warning(f"Invalid LIFTLOG_TRAINING_EXPERIENCE '{value}'. Defaulting to INTERMEDIATE.")
            return "INTERMEDIATE"
        return upper_value

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


settings = Settings()
