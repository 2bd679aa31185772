"""
Centralized configuration management with Pydantic Settings.
All environment variables are validated and typed.
"""
from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "ShopDesk API"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = Field(default="development", pattern="^(development|staging|production)$")

    # Server (the desktop shell probes this port)
    host: str = "127.0.0.1"
    port: int = 5000

    # Document store
    database_url: str = "sqlite+aiosqlite:///./shopdesk.db"
    database_echo: bool = False

    # Backend discovery - stored as comma-separated string
    backend_urls_str: str = Field(
        default="http://127.0.0.1:5000,http://localhost:5000",
        alias="BACKEND_URLS",
    )
    probe_timeout_seconds: float = 1.0
    request_timeout_seconds: float = 10.0

    @property
    def backend_urls(self) -> List[str]:
        """Parse candidate backend URLs from comma-separated string."""
        return [url.strip().rstrip("/") for url in self.backend_urls_str.split(",") if url.strip()]

    # CORS - the desktop renderer is served from the Vite dev server or file://
    allowed_origins_str: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        alias="ALLOWED_ORIGINS",
    )

    @property
    def allowed_origins(self) -> List[str]:
        """Parse allowed origins from comma-separated string."""
        return [origin.strip() for origin in self.allowed_origins_str.split(",") if origin.strip()]

    # Security
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    # Invoices
    currency_label: str = "Ksh"

    # Observability
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
