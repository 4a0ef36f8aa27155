"""
Triage Runtime Settings

Environment-driven settings for the triage engine: the user's timezone,
working hours that anchor the end-of-day batch and next-day resume times,
and the classifier credentials.
"""

from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings

from src.config.triage_config import TRIAGE_CONFIG

load_dotenv()


class TriageSettings(BaseSettings):
    """
    Triage configuration loaded from environment variables or `.env`.

    WORK_HOURS_END is the end-of-day batch hour and WORK_HOURS_START the
    hour at which deferred notifications resume on the next day when no
    free time is known.
    """
    TIMEZONE: str = Field(
        default="UTC",
        description="IANA timezone used for wall-clock delivery times"
    )
    WORK_HOURS_START: int = Field(
        default=TRIAGE_CONFIG["delay"]["resume_hour"],
        description="Hour at which deferred notifications resume next day"
    )
    WORK_HOURS_END: int = Field(
        default=TRIAGE_CONFIG["delay"]["batch_hour"],
        description="Hour of the end-of-day summary"
    )
    GROQ_API_KEY: Optional[SecretStr] = Field(
        default=None,
        description="API key for the Groq priority classifier"
    )
    CLASSIFIER_MODEL: str = Field(
        default=TRIAGE_CONFIG["classifier"]["model"]["name"],
        description="Groq model used for priority classification"
    )

    @field_validator("WORK_HOURS_START", "WORK_HOURS_END")
    @classmethod
    def validate_hour(cls, value: int) -> int:
        """Hours must fall within a single day."""
        if not 0 <= value <= 23:
            raise ValueError("Work hours must be between 0 and 23")
        return value

    @field_validator("TIMEZONE")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Reject names the zoneinfo database does not know."""
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {value}")
        return value

    @model_validator(mode="after")
    def validate_work_hours(self) -> "TriageSettings":
        if self.WORK_HOURS_START >= self.WORK_HOURS_END:
            raise ValueError("WORK_HOURS_START must be earlier than WORK_HOURS_END")
        return self

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.TIMEZONE)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore"
    }


def get_triage_settings() -> TriageSettings:
    """Load and validate triage settings from the environment."""
    return TriageSettings()
