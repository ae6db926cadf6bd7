"""
Configuration Management for Coinue

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Every component receives its settings object through its constructor,
so tests build their own settings over a temporary directory instead of
touching the process environment.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Locations of the registry, partition and export files."""

    model_config = SettingsConfigDict(
        env_prefix="COINUE_STORAGE_",
        extra="ignore"
    )

    data_dir: Path = Field(
        default=Path("data"),
        description="Root directory for all persisted data"
    )
    registry_filename: str = Field(
        default="users.json",
        description="Account registry file name (inside data_dir)"
    )
    users_dirname: str = Field(
        default="users",
        description="Directory holding one sub-directory per user"
    )
    exports_dirname: str = Field(
        default="exports",
        description="Directory receiving generated CSV exports"
    )

    @field_validator('registry_filename', 'users_dirname', 'exports_dirname')
    @classmethod
    def validate_plain_name(cls, v: str) -> str:
        """Names are single path components."""
        if not v or "/" in v or "\\" in v or v in {".", ".."}:
            raise ValueError(f"Expected a plain file or directory name, got {v!r}")
        return v

    @property
    def registry_path(self) -> Path:
        return self.data_dir / self.registry_filename

    @property
    def users_root(self) -> Path:
        return self.data_dir / self.users_dirname

    @property
    def exports_root(self) -> Path:
        return self.data_dir / self.exports_dirname


class AccountPolicySettings(BaseSettings):
    """Account registration and password policy."""

    model_config = SettingsConfigDict(
        env_prefix="COINUE_ACCOUNT_",
        extra="ignore"
    )

    password_min_length: int = Field(
        default=6,
        ge=1,
        description="Minimum password length"
    )
    password_max_length: int = Field(
        default=50,
        ge=1,
        description="Maximum password length"
    )
    password_hasher: str = Field(
        default="werkzeug",
        pattern="^(werkzeug|plaintext)$",
        description="Password hashing scheme for new and reset passwords"
    )

    @model_validator(mode='after')
    def validate_length_bounds(self) -> 'AccountPolicySettings':
        if self.password_max_length < self.password_min_length:
            raise ValueError("password_max_length cannot be below password_min_length")
        return self


class ExportSettings(BaseSettings):
    """CSV export configuration."""

    model_config = SettingsConfigDict(
        env_prefix="COINUE_EXPORT_",
        extra="ignore"
    )

    retention_days: int = Field(
        default=30,
        ge=1,
        description="Exports older than this are removed by cleanup"
    )
    timestamp_format: str = Field(
        default="%Y%m%d_%H%M%S",
        description="strftime format of the timestamp in export file names"
    )
    date_format: str = Field(
        default="%Y-%m-%d",
        description="strftime format for dates inside exports"
    )
    exporter_name: str = Field(
        default="Coinue Personal Finance",
        description="Exporter name written to the export summary"
    )
    data_version: str = Field(
        default="1.0",
        description="Export format version written to the export summary"
    )
    placeholder: str = Field(
        default="no data",
        min_length=1,
        description="Cell text used for sections without data"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Log level for the coinue loggers"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: These are loaded lazily to allow partial configuration

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def accounts(self) -> AccountPolicySettings:
        return AccountPolicySettings()

    @property
    def export(self) -> ExportSettings:
        return ExportSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus a
    "<name>_error" entry for each invalid section.
    Useful for startup checks.
    """
    results = {}
    settings = get_settings()

    for name in ("storage", "accounts", "export", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
