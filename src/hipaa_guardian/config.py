"""
Configuration management for HIPAA Guardian.

Configuration is loaded from:
1. Environment variables (HIPAA_GUARDIAN_ prefix, ``__`` for nesting)
2. config.yaml file
3. Default values (lowest priority)

This covers process-level settings (where data lives, logging, report
output). The scan schedule itself is user data and lives in the store.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import yaml

DEFAULT_DATA_DIR = Path.home() / ".hipaa_guardian"


class StorageSettings(BaseSettings):
    """Location of the configuration and audit database."""

    data_dir: Path = DEFAULT_DATA_DIR
    database: str = "guardian.db"

    @field_validator("data_dir", mode="before")
    @classmethod
    def expand_data_dir(cls, v):
        return Path(v).expanduser()

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.database

    @property
    def legacy_json_path(self) -> Path:
        """Pre-database configuration file, migrated on first open."""
        return self.data_dir / "config.json"


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    file: str | None = None
    json_format: bool = False


class ReportSettings(BaseSettings):
    """Certificate and audit report output."""

    output_dir: Path = Field(default_factory=lambda: Path.home() / "Documents")
    format: Literal["html", "pdf"] = "html"
    organization: str = "HIPAA Guardian"

    @field_validator("output_dir", mode="before")
    @classmethod
    def expand_output_dir(cls, v):
        return Path(v).expanduser()


class SchedulerSettings(BaseSettings):
    """Background scan orchestrator."""

    stop_timeout: float = Field(default=30.0, gt=0)  # Seconds to wait for the loop on stop()
    history_limit: int = Field(default=50, ge=1)


class Settings(BaseSettings):
    """Main settings class that combines all configuration sections."""

    model_config = SettingsConfigDict(
        env_prefix="HIPAA_GUARDIAN_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    storage: StorageSettings = Field(default_factory=StorageSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    reports: ReportSettings = Field(default_factory=ReportSettings)
    scheduler: SchedulerSettings = Field(default_factory=SchedulerSettings)


def load_yaml_config(path: Path | None = None) -> dict:
    """
    Load configuration from YAML file.

    Without an explicit path, the first of config.yaml, config/config.yaml
    and <data_dir>/config.yaml that exists is used. For this lookup
    data_dir comes from the environment or the default.
    """
    if path is None:
        candidates = [
            Path("config.yaml"),
            Path("config/config.yaml"),
            Settings().storage.data_dir / "config.yaml",
        ]
        for candidate in candidates:
            if candidate.exists():
                path = candidate
                break

    if path and path.exists():
        with open(path) as f:
            return yaml.safe_load(f) or {}

    return {}


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    yaml_config = load_yaml_config()
    return Settings(**yaml_config)


def reload_settings() -> Settings:
    """Force reload of settings (clears cache)."""
    get_settings.cache_clear()
    return get_settings()
