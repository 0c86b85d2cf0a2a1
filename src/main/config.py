"""
Application Settings - Main Layer

Use Pydantic Settings for configuration management.
This module handles configuration settings provided using
environment variables, .env files and default values.
"""

from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.shared import EnumEnvironment, EnumLogLevel, EnumStorageBackend


class DatabaseSettings(BaseSettings):
    """MongoDB settings, used by the GridFS storage backend."""

    mongo_uri: str = Field(
        default="mongodb://localhost:27017/emigrant_forecast",
        description="MongoDB connection URI",
        validation_alias=AliasChoices("DB_MONGO_URI", "MONGO_URI"),
    )
    database_name: str = Field(
        default="emigrant_forecast", description="Name of the MongoDB database"
    )
    gridfs_collection: str = Field(
        default="forecast_model_artifacts",
        description="GridFS bucket holding model artifacts",
    )

    model_config = SettingsConfigDict(
        env_prefix="DB_", case_sensitive=False, extra="ignore"
    )


class StorageSettings(BaseSettings):
    """Model store settings."""

    backend: EnumStorageBackend = Field(
        default=EnumStorageBackend.FILESYSTEM,
        description="Where trained models are persisted",
    )
    directory: str = Field(
        default="./data/models",
        description="Root directory of the filesystem backend",
    )

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_", case_sensitive=False, extra="ignore"
    )


class ForecastSettings(BaseSettings):
    """Training and forecasting defaults."""

    lookback: int = Field(default=3, ge=1, description="Years per input window")
    default_epochs: int = Field(default=100, ge=1, description="Training epochs")
    validation_split: float = Field(
        default=0.2, gt=0.0, lt=1.0, description="Fraction of windows held out"
    )
    learning_rate: float = Field(
        default=0.001, gt=0.0, le=1.0, description="Adam learning rate"
    )
    progress_interval: int = Field(
        default=20, ge=1, description="Epochs between progress reports"
    )
    training_timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0.0,
        description="Wall-clock ceiling for one training run (unset disables)",
        validation_alias=AliasChoices(
            "FORECAST_TRAINING_TIMEOUT_SECONDS", "TRAINING_TIMEOUT_SECONDS"
        ),
    )

    model_config = SettingsConfigDict(
        env_prefix="FORECAST_", case_sensitive=False, extra="ignore"
    )


class ServiceSettings(BaseSettings):
    """HTTP service metadata and server options."""

    title: str = Field(default="Emigrant Forecast API", description="API title")
    description: str = Field(
        default="Training and forecasting service for yearly Filipino "
        "emigrant counts",
        description="API description",
    )
    version: str = Field(default="1.0.0", description="API version")
    host: str = Field(default="0.0.0.0", description="Interface to bind the server")
    port: int = Field(default=8000, description="Port to bind the server")
    reload: bool = Field(
        default=False, description="Enable auto-reload for development"
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"], description="Allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_", case_sensitive=False, extra="ignore"
    )


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    level: EnumLogLevel = Field(default=EnumLogLevel.INFO, description="Logging level")
    file_path: Optional[str] = Field(
        default=None, description="Log file path (if None, logs to console)"
    )
    json_logs: Optional[bool] = Field(
        default=None, description="Force JSON output (defaults to production only)"
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_", case_sensitive=False, extra="ignore"
    )


class AppSettings(BaseSettings):
    """Main application settings, aggregating all sub-settings."""

    environment: EnumEnvironment = Field(
        default=EnumEnvironment.DEVELOPMENT, description="Application environment"
    )

    app: ServiceSettings = Field(default_factory=ServiceSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    forecast: ForecastSettings = Field(default_factory=ForecastSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter="__",
        extra="ignore",
    )


def get_settings() -> AppSettings:
    """
    Get application settings instance Factory.

    Used to be mocked in tests, allowing different settings based on environment.
    """
    return AppSettings()
