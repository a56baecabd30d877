"""Application settings and configuration."""

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


def get_default_data_dir() -> Path:
    """Return the default data directory."""
    return Path.home() / ".flowbalance"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Flow Balance"
    app_version: str = "0.1.0"

    # development | production | test
    environment: str = "development"

    # Data directory (SQLite file lives here unless database_url is set)
    data_dir: Optional[Path] = None
    database_url: Optional[str] = None

    log_level: str = "INFO"

    # Authentication
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expire_days: int = 7
    auth_cookie_name: str = "auth-token"
    bcrypt_rounds: int = 10

    # Sync behavior
    sync_interval_hours: int = 6
    future_data_refresh_threshold_days: int = 2
    default_future_data_days: int = 7
    processing_log_retention_days: int = 30

    # Exchange rates
    exchange_rate_update_interval_hours: int = 24
    exchange_rate_api_url: str = "https://api.frankfurter.dev/v1"
    exchange_rate_api_timeout_seconds: float = 10.0
    exchange_rate_provider: str = "frankfurter"  # frankfurter | static
    transitive_rate_max_rounds: int = 5

    currency_cache_ttl_seconds: int = 300
    display_timezone: str = "Asia/Shanghai"

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    def get_data_dir(self) -> Path:
        """Get the data directory, creating it if needed."""
        data_dir = self.data_dir or get_default_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def get_database_url(self) -> str:
        """Get database URL, deriving from data_dir if not set."""
        if self.database_url:
            return self.database_url
        db_path = self.get_data_dir() / "flowbalance.db"
        return f"sqlite:///{db_path}"


# Global settings instance (can be replaced at runtime)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the current settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Set the global settings instance (used by tests and scripts)."""
    global _settings
    _settings = settings


def reset_settings() -> None:
    """Reset settings to force reload."""
    global _settings
    _settings = None
