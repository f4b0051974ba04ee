from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import computed_field
from functools import lru_cache
from pathlib import Path

from newsletter.domain import SubscriberEmail

# Get the project root (the directory holding pyproject.toml)
PROJECT_ROOT = Path(__file__).parent.parent


class Settings(BaseSettings):

    # Application
    app_env: str = "development"
    app_debug: bool = False
    app_host: str = "127.0.0.1"
    app_port: int = 8000
    app_base_url: str = "http://127.0.0.1:8000"  # Used to build confirmation links
    log_level: str = "INFO"

    # PostgreSQL Configuration
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_db: str = "newsletter"
    postgres_user: str = "postgres"
    postgres_password: str = "password"
    postgres_require_ssl: bool = False

    # SQLite (local development and tests)
    use_sqlite: bool = False
    sqlite_url: str = "sqlite+aiosqlite:///./data/newsletter.db"

    @computed_field
    @property
    def database_url(self) -> str:
        """Return the appropriate database URL based on configuration."""
        if self.use_sqlite:
            return self.sqlite_url
        return f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"

    # Database pooling (PostgreSQL)
    db_pool_size: int = 10
    db_max_overflow: int = 5
    db_pool_recycle: int = 1800
    db_pool_timeout: float = 2.0  # Seconds to wait for a free connection

    # Email delivery API (Postmark-compatible)
    email_base_url: str = "http://localhost:9000"
    email_sender: str = "no-reply@newsletter.io"
    email_authorization_token: str = ""
    email_timeout_ms: int = 10000

    def email_sender_address(self) -> SubscriberEmail:
        """Return the configured sender as a validated SubscriberEmail."""
        return SubscriberEmail.parse(self.email_sender)

    @property
    def email_timeout_seconds(self) -> float:
        return self.email_timeout_ms / 1000

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
