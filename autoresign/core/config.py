"""Settings read once at startup from the environment."""

import os
from typing import Mapping, Optional, Self

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from autoresign.core.exceptions import ConfigurationError

LOG_LEVELS = ("debug", "info", "warning", "error")

# environment variable -> settings field
ENV_FIELDS: dict[str, str] = {
    "DATABASE_URL": "database_url",
    "MAILJET_API_KEY": "mailjet_api_key",
    "MAILJET_SECRET_KEY": "mailjet_secret_key",
    "WORKER_POLL_INTERVAL_SECS": "poll_interval_secs",
    "AUTO_RESIGN_NOTIFY_HOURS": "notify_threshold_hours",
    "AUTO_RESIGN_DELAY_HOURS": "resolve_delay_hours",
    "AUTO_RESIGN_MIN_HISTORY": "min_history_length",
    "APP_BASE_URL": "app_base_url",
    "UNSUBSCRIBE_BASE_URL": "unsubscribe_base_url",
    "MAIL_SENDER_EMAIL": "sender_email",
    "MAIL_SENDER_NAME": "sender_name",
    "LOG_LEVEL": "log_level",
}


class WorkerSettings(BaseModel):
    database_url: str = Field(min_length=1)
    mailjet_api_key: str = Field(min_length=1)
    mailjet_secret_key: str = Field(min_length=1)

    poll_interval_secs: float = Field(default=120, gt=0)
    notify_threshold_hours: float = Field(default=48, ge=0)
    resolve_delay_hours: float = Field(default=24, ge=0)
    min_history_length: int = Field(default=4, ge=0)

    app_base_url: str = "https://www.distrochess.com"
    unsubscribe_base_url: str = "https://www.distrochess.com/unsubscribe"
    sender_email: str = "support@distrochess.com"
    sender_name: str = "DistroChess"
    log_level: str = "info"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.strip().lower()
        if level == "warn":
            level = "warning"
        if level not in LOG_LEVELS:
            raise ValueError(f"log level must be one of {', '.join(LOG_LEVELS)}")
        return level

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> Self:
        """
        Build the settings from environment variables.
        ----
        Outside production a local .env file is loaded first (existing variables win).
        Raises ConfigurationError for missing credentials / connection string or unparsable values.
        """
        if environ is None:
            if os.environ.get("APP_ENV") != "production":
                load_dotenv()
            environ = os.environ

        values = {
            field_name: environ[env_name]
            for env_name, field_name in ENV_FIELDS.items()
            if environ.get(env_name, "").strip()
        }
        try:
            return cls(**values)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid worker configuration: {exc}") from exc
