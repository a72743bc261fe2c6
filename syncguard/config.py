"""Application configuration loaded from environment variables."""

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings sourced from environment variables or .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Database
    database_url: str = "postgresql+asyncpg://localhost:5432/syncguard"

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # Auto-disable policy (feature toggle and limits)
    auto_disables_failing_connections: bool = False
    max_failed_jobs_in_a_row_before_connection_disable: int = Field(default=100, ge=1)
    max_days_of_only_failed_jobs_before_connection_disable: int = Field(default=14, ge=1)

    # Sweep scheduling
    auto_disable_sweep_interval_seconds: int = Field(default=60, ge=1)
    auto_disable_max_attempts: int = Field(default=3, ge=1)

    # Telegram (optional -- notifications are skipped without these)
    telegram_bot_token: str = ""
    telegram_chat_id: str = ""

    @model_validator(mode="after")
    def normalize_database_url(self) -> "Settings":
        """Ensure DATABASE_URL uses the asyncpg driver.

        Hosting providers usually hand out postgresql:// URLs but SQLAlchemy
        async requires postgresql+asyncpg://.
        """
        url = self.database_url
        if url.startswith("postgresql://"):
            self.database_url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        elif url.startswith("postgres://"):
            self.database_url = url.replace("postgres://", "postgresql+asyncpg://", 1)
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached singleton Settings instance."""
    return Settings()
