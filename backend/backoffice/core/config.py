"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_name: str = "Janitor Admin Back-Office"
    debug: bool = False
    api_v1_prefix: str = "/v1"
    log_level: str = "INFO"
    allowed_origins: str = "http://localhost:3000"

    # Supabase
    supabase_url: str
    supabase_anon_key: str
    supabase_service_role_key: str
    functions_timeout_seconds: float = 10.0

    # Redirect targets for invitation / password reset links
    admin_app_url: str = "http://localhost:3000"
    client_app_url: str = "https://app.example.com"
    provider_app_url: str = "https://provider.example.com"

    # Scheduled GDPR cleanup
    cleanup_api_token: Optional[str] = None

    # Query cache
    cache_ttl_seconds: int = 120
    cache_max_entries: int = 512

    # Business rules
    commission_rate: float = 0.20
    subscription_fee: float = 100.0
    provider_payout_rate: float = 0.85
    default_lock_minutes: int = 60

    @property
    def functions_url(self) -> str:
        """Base URL of the hosted edge functions."""
        return f"{self.supabase_url.rstrip('/')}/functions/v1"

    @property
    def password_reset_redirect(self) -> str:
        return f"{self.admin_app_url.rstrip('/')}/reset-password"


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
