"""Configuration for flatsocial.

Settings come from environment variables (``DATA_DIR``, ``LOG_LEVEL``, ...)
and an optional ``.env`` file in the working directory. The active
``ENVIRONMENT`` picks a logging profile that overrides the individual
logging fields.

Example:
    >>> from flatsocial.config import settings
    >>> settings.data_dir
    PosixPath('/home/me/project/data')
    >>> settings.avatars_dir.name
    'avatars'
"""

from enum import StrEnum
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

AVATARS_DIR_NAME = "avatars"
POST_IMAGES_DIR_NAME = "posts_images"
EXPORT_DIR_NAME = "export"
LOG_FILE_NAME = "flatsocial.log"

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


class Environment(StrEnum):
    """Deployment profile."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"
    STAGING = "staging"


# Logging overrides applied per environment; "min_level" only raises the level
ENVIRONMENT_PROFILES: dict[Environment, dict[str, Any]] = {
    Environment.DEVELOPMENT: {"log_level": "DEBUG", "log_json": False},
    Environment.PRODUCTION: {"min_level": "INFO", "log_json": True},
    Environment.TESTING: {"log_level": "ERROR", "log_json": False, "log_to_file": False},
    Environment.STAGING: {"log_level": "INFO", "log_json": True},
}


class Settings(BaseSettings):
    """Runtime settings for the store and its command-line front end.

    Attributes:
        environment: Deployment profile, see ``ENVIRONMENT_PROFILES``
        data_dir: Root of the flat files, media directories and exports
        log_level: Minimum loguru level
        log_to_file: Add a rotated log file inside ``data_dir``
        log_json: Emit JSON lines instead of coloured text
        metrics_enabled: Record Prometheus metrics for store operations
        seed_sample_data: Let ``flatsocial init`` seed demo accounts into an empty store
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Environment = Environment.DEVELOPMENT
    data_dir: Path = Field(Path("./data"), validate_default=True)

    log_level: str = "INFO"
    log_to_file: bool = True
    log_json: bool = False

    metrics_enabled: bool = True
    seed_sample_data: bool = True

    @field_validator("data_dir", mode="before")
    @classmethod
    def prepare_data_dir(cls, v: str | Path) -> Path:
        """Resolve ``data_dir`` to an absolute path and create it."""
        path = Path(v).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    @field_validator("log_level")
    @classmethod
    def check_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {v!r}")
        return level

    @model_validator(mode="after")
    def apply_profile(self) -> "Settings":
        """Override logging fields from the environment's profile."""
        profile = ENVIRONMENT_PROFILES[self.environment]
        for field, value in profile.items():
            if field == "min_level":
                if LOG_LEVELS.index(self.log_level) < LOG_LEVELS.index(value):
                    self.log_level = value
            else:
                setattr(self, field, value)
        return self

    @property
    def avatars_dir(self) -> Path:
        return self.data_dir / AVATARS_DIR_NAME

    @property
    def post_images_dir(self) -> Path:
        return self.data_dir / POST_IMAGES_DIR_NAME

    @property
    def export_dir(self) -> Path:
        """Default export location, created on access."""
        path = self.data_dir / EXPORT_DIR_NAME
        path.mkdir(parents=True, exist_ok=True)
        return path

    @property
    def log_file(self) -> Path:
        return self.data_dir / LOG_FILE_NAME

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    @property
    def is_testing(self) -> bool:
        return self.environment == Environment.TESTING


def get_settings() -> Settings:
    """Build settings from the current environment.

    The CLI calls this per command so environment changes made after import
    (for example ``DATA_DIR``) take effect.
    """
    return Settings()


settings = get_settings()
