"""
Configuration system for ssmigrate using Pydantic.
"""

import os
from pathlib import Path
from typing import Any, Literal, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


class StoreConfig(BaseModel):
    """Spreadsheet store connection configuration."""

    provider: Literal["google_sheets"] = Field(
        "google_sheets", description="Store implementation"
    )
    api_base_url: str = Field(
        "https://sheets.googleapis.com/v4/spreadsheets",
        description="Base URL of the spreadsheets API",
    )
    access_token: Optional[str] = Field(
        None, description="OAuth2 bearer token for the store API"
    )
    timeout: int = Field(30, description="Request timeout in seconds")
    sample_rows: int = Field(
        100, description="Number of data rows sampled per column for type inference"
    )

    @field_validator("timeout", "sample_rows")
    @classmethod
    def must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be positive")
        return v


class ApplyConfig(BaseModel):
    """Apply behaviour configuration."""

    dry_run: bool = Field(False, description="Report changes without mutating the store")
    auto_confirm: bool = Field(False, description="Skip the confirmation prompt")
    create_missing_resources: bool = Field(
        True, description="Create sheets that do not exist yet before applying"
    )
    timeout_seconds: Optional[float] = Field(
        None, description="Cancel the remaining changes after this many seconds"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        "WARNING", description="Log level"
    )
    format: str = Field(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format (file handler)",
    )
    file: Optional[str] = Field(None, description="Log file path")
    max_size: int = Field(10485760, description="Max log file size in bytes")  # 10MB
    backup_count: int = Field(5, description="Number of backup log files")


class MigrateSettings(BaseSettings):
    """Main ssmigrate configuration."""

    debug: bool = Field(False, description="Enable debug mode")

    store: StoreConfig = Field(
        default_factory=StoreConfig, description="Store configuration"
    )
    apply: ApplyConfig = Field(
        default_factory=ApplyConfig, description="Apply configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SSMIGRATE_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "MigrateSettings":
        """Load configuration from a YAML file."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}

            # Expand environment variables in the data
            data = cls._expand_env_vars(data)

            return cls(**data)
        except FileNotFoundError:
            raise ConfigurationError(f"Configuration file not found: {path}")
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file: {e}")
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}")

    @classmethod
    def load(cls, path: Optional[Union[str, Path]] = None) -> "MigrateSettings":
        """Load from YAML when a path is given, otherwise from the environment."""
        if path:
            return cls.from_yaml(path)
        try:
            return cls()
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}")

    @classmethod
    def _expand_env_vars(cls, data: Any) -> Any:
        """Recursively expand environment variables in configuration data."""
        if isinstance(data, dict):
            return {k: cls._expand_env_vars(v) for k, v in data.items()}
        elif isinstance(data, list):
            return [cls._expand_env_vars(item) for item in data]
        elif isinstance(data, str):
            return os.path.expandvars(data)
        else:
            return data
