"""Environment-driven configuration for the Phone Shoppe service.

*What:* Every tunable the service reads (database URL, logging level, stock
thresholds, SKU series) lives on ``AppSettings``.
*When:* Values are read once, the first time ``get_settings`` is called.
*How:* ``pydantic-settings`` pulls from the process environment and the optional
``.env`` files so development boots without extra setup.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Environment-driven application configuration."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    APP_NAME: str = "Phone Shoppe POS"
    APP_ENV: str = "dev"

    BASE_DIR: Path = Field(default_factory=lambda: Path(__file__).resolve().parent.parent)
    DATA_DIR: Path = Field(default_factory=lambda: Path(__file__).resolve().parent.parent.parent / "data")
    DB_URL: str | None = Field(default=None, validation_alias=AliasChoices("DB_URL", "DATABASE_URL"))

    HOST: str = "0.0.0.0"
    PORT: int = 8089
    LOG_LEVEL: str = "INFO"

    # Items at or below this quantity are reported as "Low Stock".
    DEFAULT_REORDER_LEVEL: int = 5
    # Auto-generated SKUs live in the 9000000+ series.
    SKU_SERIES_START: int = 9000000
    # Cue name returned to the UI when a scan matches.
    SCAN_CUE: str = "beep"
    # Basket sessions untouched for this long are dropped from the registry.
    BASKET_SESSION_IDLE_SECONDS: int = 4 * 60 * 60

    @property
    def database_url(self) -> str:
        return self.DB_URL or f"sqlite:///{self.DATA_DIR / 'phoneshoppe.db'}"


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    settings = AppSettings()
    if settings.database_url.startswith("sqlite:///") and settings.DB_URL is None:
        settings.DATA_DIR.mkdir(parents=True, exist_ok=True)
    return settings


settings = get_settings()
