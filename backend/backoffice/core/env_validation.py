"""
Runtime Environment Validation Module

Validates the required environment variables at application startup.
If validation fails, the application refuses to start (hard fail).
"""

import logging
import sys
from typing import Optional

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class ProductionSettings(BaseSettings):
    """
    Strict validation schema for the back-office environment.

    All required fields MUST be present and valid, or the application will not start.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================================================
    # CRITICAL: Supabase project
    # ========================================================================
    supabase_url: str  # REQUIRED: https://<project>.supabase.co
    supabase_anon_key: str  # REQUIRED: public anon key
    supabase_service_role_key: str  # REQUIRED: service role key (server side only)

    # ========================================================================
    # Application Configuration
    # ========================================================================
    app_name: str = "Janitor Admin Back-Office"
    debug: bool = False
    api_v1_prefix: str = "/v1"
    log_level: str = "INFO"

    # ========================================================================
    # CRITICAL: CORS Configuration
    # ========================================================================
    allowed_origins: str  # REQUIRED: Comma-separated list of allowed origins

    # ========================================================================
    # Optional
    # ========================================================================
    admin_app_url: Optional[str] = None
    cleanup_api_token: Optional[str] = None


def validate_environment() -> ProductionSettings:
    """
    Validate all required environment variables at startup.

    Returns:
        ProductionSettings: Validated settings object

    Raises:
        SystemExit: If validation fails (exit code 1)
    """
    try:
        settings = ProductionSettings()
    except ValidationError as e:
        print("❌ FATAL: Environment validation failed", file=sys.stderr)
        print("\nMissing or invalid environment variables:", file=sys.stderr)
        for error in e.errors():
            field = " -> ".join(str(loc) for loc in error["loc"])
            print(f"   • {field}: {error['msg']}", file=sys.stderr)

        print("\nThe application cannot start with invalid configuration.", file=sys.stderr)
        print("Please check your .env file or environment variables.", file=sys.stderr)
        sys.exit(1)

    # 1. CORS: wildcard is only tolerated in debug mode
    if not settings.debug:
        origins = [o.strip() for o in settings.allowed_origins.split(",")]
        if "*" in origins:
            print(
                "❌ FATAL: Wildcard CORS origin (*) detected in production mode.",
                file=sys.stderr,
            )
            print(
                "   Set ALLOWED_ORIGINS to specific domains (comma-separated).",
                file=sys.stderr,
            )
            sys.exit(1)

    # 2. Supabase URL: basic format validation
    if not settings.supabase_url.startswith(("https://", "http://")):
        print(
            "❌ FATAL: SUPABASE_URL must be an http(s):// URL (e.g. https://<project>.supabase.co)",
            file=sys.stderr,
        )
        sys.exit(1)

    logger.info(
        "Environment validation passed: app=%s debug=%s supabase=%s",
        settings.app_name,
        settings.debug,
        settings.supabase_url,
    )
    return settings


if __name__ == "__main__":
    validate_environment()
    print("\n✅ All environment variables are valid!")
