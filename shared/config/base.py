"""Base configuration management shared by the sparsebn packages."""

from enum import Enum
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Supported deployment environments."""

    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


class BaseConfiguration(BaseSettings):
    """Base configuration class read from the environment and an optional .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Current deployment environment",
    )

    def to_dict(self) -> dict[str, Any]:
        """Settings as plain JSON-compatible values, for logging and reports."""
        return self.model_dump(mode="json")

    def validate_configuration(self) -> list[str]:
        """Validate the current configuration and return any issues."""
        # Override in subclasses for specific validation
        return []
