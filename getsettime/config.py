"""
Configuration management using Pydantic models loaded from YAML.
"""

import os
from pathlib import Path

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator

from .domain.time_utils import get_display_timezone

ACCESS_TOKEN_ENV_VAR = "GETSETTIME_ACCESS_TOKEN"

DEFAULT_WORKSPACE_NAME = "Get Set Time"


class DefaultsConfig(BaseModel):
    """Defaults for the booking flow."""
    duration_minutes: int = 30
    calendar_days: int = 10
    buffer_days_before: int = 5
    buffer_days_after: int = 30

    @field_validator("duration_minutes", "calendar_days")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        """Ensure durations and day counts are positive."""
        if value <= 0:
            raise ValueError(f"Value must be greater than zero, got {value}")
        return value

    @field_validator("buffer_days_before", "buffer_days_after")
    @classmethod
    def validate_buffer(cls, value: int) -> int:
        if value < 0:
            raise ValueError(f"Buffer days cannot be negative, got {value}")
        return value


class AppConfig(BaseModel):
    """Application configuration."""
    api_base_url: str = "http://localhost:3000"
    access_token: str | None = None
    timezone: str | None = None
    workspace_name: str = DEFAULT_WORKSPACE_NAME
    request_timeout: float = 30
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str | None) -> str | None:
        """Ensure the timezone is a known IANA name."""
        if value is None or not value.strip():
            return None
        try:
            pendulum.timezone(value.strip())
        except Exception as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value.strip()

    @field_validator("api_base_url")
    @classmethod
    def validate_base_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("api_base_url must start with http:// or https://")
        return value.rstrip("/")

    def get_timezone(self) -> str:
        """Workspace timezone, falling back to the local one."""
        return get_display_timezone(self.timezone)

    def get_access_token(self) -> str:
        """
        Resolve the API token from config or the environment.

        Raises:
            ValueError: If no token is configured
        """
        token = self.access_token or os.environ.get(ACCESS_TOKEN_ENV_VAR)
        if not token:
            raise ValueError(
                f"No access token configured. Set access_token in config.yaml "
                f"or the {ACCESS_TOKEN_ENV_VAR} environment variable."
            )
        return token

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    config_path = Path.cwd() / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        config_path = Path(__file__).parent.parent / "config.yaml"

    return config_path
