"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore", # Allow extra env vars without failing
    )

    # App
    app_name: str = "Aftermath Archive"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"
    # Secret key MUST be provided via environment (e.g. SECRET_KEY in .env)
    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24

    # API
    api_prefix: str = ""
    allowed_origins: list[str] = [
        "http://localhost:3000",  # CRA local
        "http://localhost:5173",  # vite local
        "http://aftermath-archive.xyz",
    ]

    # Pagination
    default_page_size: int = 10
    max_page_size: int = 100

    # Database
    database_url: str = "sqlite+aiosqlite:///./aftermath.db"
    db_ssl_mode: str = "disable" # "require" for production
    database_pool_size: int = 5
    database_max_overflow: int = 10
    create_tables_on_startup: bool = True

    # Bootstrap admin, only seeded when a password is configured
    admin_username: str = "admin"
    admin_email: str = "admin@aftermath-archive.xyz"
    admin_password: Optional[str] = None


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
