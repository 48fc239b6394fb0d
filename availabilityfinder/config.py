"""
Configuration management using Pydantic models loaded from YAML.
"""

import logging
from pathlib import Path
from typing import Literal

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator


class StoreConfig(BaseModel):
    """Where rules and bookings are read from."""
    backend: Literal["json", "supabase"] = "json"
    data_file: Path = Path("availability.json")
    supabase_url: str = ""
    supabase_key: str = ""
    request_timeout: float = 10.0

    @field_validator("request_timeout")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        """Ensure the request timeout is positive."""
        if value <= 0:
            raise ValueError("request_timeout must be greater than zero")
        return value

    @model_validator(mode="after")
    def validate_supabase_settings(self) -> "StoreConfig":
        """The Supabase backend needs a project URL and a key."""
        if self.backend == "supabase" and not (self.supabase_url and self.supabase_key):
            raise ValueError("supabase backend requires supabase_url and supabase_key")
        return self


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "Europe/Amsterdam"
    lookahead_days: int = 7
    horizon_strategy: Literal["heuristic", "exact"] = "heuristic"
    log_level: str = "WARNING"
    store: StoreConfig = Field(default_factory=StoreConfig)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the timezone is a known IANA name."""
        try:
            pendulum.timezone(value)
        except (KeyError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("lookahead_days")
    @classmethod
    def validate_lookahead(cls, value: int) -> int:
        """Validate lookahead is between 1 and 366 days."""
        if not 1 <= value <= 366:
            raise ValueError(f"lookahead_days must be between 1 and 366, got {value}")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Accept standard logging level names in any case."""
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        A relative ``store.data_file`` is resolved against the directory of
        the config file.

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

        if not config.store.data_file.is_absolute():
            config.store.data_file = config_path.parent / config.store.data_file

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
