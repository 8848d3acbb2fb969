"""
Application settings with Pydantic v2 validation.

Loads configuration from environment variables with sensible defaults.
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Storage configuration."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    data_dir: Path = Path("data")
    db_name: str = "stockledger.db"

    # SQLite settings
    pool_size: int = 5
    busy_timeout: int = 30000  # ms
    acquire_timeout: float = 30.0  # s, wait for a free pooled connection

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name


class LedgerSettings(BaseSettings):
    """Stock ledger configuration."""

    model_config = SettingsConfigDict(env_prefix="LEDGER_")

    # Tolerance for comparing float quantities (deduction sums, batch totals)
    quantity_epsilon: float = 1e-6

    # Batches expiring within this many days are reported as alerts
    expiry_alert_days: int = 7

    # JSON-lines file receiving movement and order events; unset keeps them on stdout only
    audit_log_path: Path | None = None


class PurchaseSettings(BaseSettings):
    """Purchase-need calculation configuration."""

    model_config = SettingsConfigDict(env_prefix="PURCHASE_")

    merge_policy: Literal["max", "sum", "override"] = "max"
    round_up_suggestions: bool = False

    # Suggested purchase date = first planned production minus lead days
    lead_days: int = 2


class APISettings(BaseSettings):
    """API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    cors_origins: list[str] = ["*"]


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Kitchen Stock Ledger"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    # auto: console renderer in development, JSON elsewhere
    log_format: Literal["auto", "console", "json"] = "auto"

    # Sub-settings
    storage: StorageSettings = Field(default_factory=StorageSettings)
    ledger: LedgerSettings = Field(default_factory=LedgerSettings)
    purchase: PurchaseSettings = Field(default_factory=PurchaseSettings)
    api: APISettings = Field(default_factory=APISettings)

    @field_validator("storage", mode="before")
    @classmethod
    def ensure_data_dir(cls, v: Any) -> StorageSettings:
        if isinstance(v, dict):
            settings = StorageSettings(**v)
        else:
            settings = v or StorageSettings()
        settings.data_dir.mkdir(parents=True, exist_ok=True)
        return settings


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (for testing)."""
    global _settings
    _settings = None
