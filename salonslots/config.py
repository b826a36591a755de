"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.timegrid import validate_timezone


class DefaultsConfig(BaseModel):
    """Default settings for availability queries."""
    duration_minutes: int = 30
    slot_step_minutes: int = 30
    capacity: int = 1

    @field_validator("duration_minutes", "slot_step_minutes")
    @classmethod
    def validate_positive_minutes(cls, value: int) -> int:
        """Ensure minute values are positive."""
        if value <= 0:
            raise ValueError("minute values must be greater than zero")
        return value

    @field_validator("capacity")
    @classmethod
    def validate_capacity(cls, value: int) -> int:
        """Capacity is the number of appointments that may overlap; at least 1."""
        if value < 1:
            raise ValueError(f"capacity must be at least 1, got {value}")
        return value


class AppConfig(BaseModel):
    """Application configuration."""
    default_timezone: str = "UTC"
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    backend: Literal["file", "http"] = "file"
    data_file: Optional[Path] = None
    api_base_url: Optional[str] = None
    api_token: Optional[str] = None
    api_timeout_seconds: float = 30

    @field_validator("default_timezone")
    @classmethod
    def validate_default_timezone(cls, value: str) -> str:
        """Reject unknown IANA timezone names."""
        return validate_timezone(value)

    @model_validator(mode="after")
    def validate_backend_settings(self) -> "AppConfig":
        """Ensure the selected backend has what it needs."""
        if self.backend == "file" and self.data_file is None:
            raise ValueError("data_file is required when backend is 'file'")
        if self.backend == "http" and not self.api_base_url:
            raise ValueError("api_base_url is required when backend is 'http'")
        return self

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        A relative ``data_file`` is resolved against the config file's folder.

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

        config = cls(**data)
        if config.data_file is not None and not config.data_file.is_absolute():
            config.data_file = config_path.parent / config.data_file
        return config


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
