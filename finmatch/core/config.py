"""Application configuration loaded from the environment."""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # API
    app_name: str = "Finmatch"
    debug: bool = False
    log_level: str = "INFO"

    # Storage
    database_url: str = "sqlite:///data/finmatch.db"

    # Rules and filters
    pending_status: str = "pending"
    filter_test_limit: int = 10
    search_limit: int = 100
    rules_file: str | None = None

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @field_validator("database_url")
    @classmethod
    def normalize_database_url(cls, value: str) -> str:
        # Hosted Postgres providers hand out postgres:// but SQLAlchemy requires postgresql://
        if value.startswith("postgres://"):
            return value.replace("postgres://", "postgresql://", 1)
        return value


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
