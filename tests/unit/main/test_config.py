from __future__ import annotations

from src.main.config import AppSettings, get_settings
from src.shared.consts import EnumEnvironment, EnumLogLevel, EnumStorageBackend


def test_get_settings_loads_defaults(monkeypatch) -> None:
    for name in ("DB_MONGO_URI", "MONGO_URI", "STORAGE_BACKEND", "FORECAST_LOOKBACK"):
        monkeypatch.delenv(name, raising=False)

    settings = get_settings()

    assert settings.environment == EnumEnvironment.DEVELOPMENT
    assert settings.database.mongo_uri.startswith("mongodb://")
    assert settings.storage.backend == EnumStorageBackend.FILESYSTEM
    assert settings.forecast.lookback == 3
    assert settings.forecast.progress_interval == 20
    assert settings.forecast.learning_rate == 0.001
    assert settings.forecast.training_timeout_seconds is None


def test_settings_respect_prefixed_environment_variables(monkeypatch) -> None:
    monkeypatch.setenv("DB_MONGO_URI", "mongodb://test")
    monkeypatch.setenv("STORAGE_BACKEND", "gridfs")
    monkeypatch.setenv("APP_TITLE", "Testing")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("FORECAST_DEFAULT_EPOCHS", "250")

    settings = AppSettings()

    assert settings.database.mongo_uri == "mongodb://test"
    assert settings.storage.backend == EnumStorageBackend.GRIDFS
    assert settings.app.title == "Testing"
    assert settings.logging.level == EnumLogLevel.DEBUG
    assert settings.forecast.default_epochs == 250


def test_settings_accept_short_aliases(monkeypatch) -> None:
    monkeypatch.delenv("DB_MONGO_URI", raising=False)
    monkeypatch.delenv("FORECAST_TRAINING_TIMEOUT_SECONDS", raising=False)
    monkeypatch.setenv("MONGO_URI", "mongodb://alias")
    monkeypatch.setenv("TRAINING_TIMEOUT_SECONDS", "90")

    settings = AppSettings()

    assert settings.database.mongo_uri == "mongodb://alias"
    assert settings.forecast.training_timeout_seconds == 90.0


def test_settings_accept_nested_delimiter(monkeypatch) -> None:
    monkeypatch.setenv("FORECAST__LOOKBACK", "5")

    settings = AppSettings()

    assert settings.forecast.lookback == 5
