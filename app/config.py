# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# This module loads configuration from environment variables using pydantic-settings.
# It provides a single Settings class with all configuration values.
#
# Usage:
#   from app.config import settings
#   print(settings.SUPABASE_URL)
#
# Environment variables are loaded from:
# 1. System environment variables
# 2. .env file in project root (if exists)
#
# The Settings class validates all values at startup, catching configuration
# errors early rather than at runtime.
# =============================================================================

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses pydantic-settings to:
    - Automatically load from .env file
    - Validate types and constraints
    - Provide sensible defaults for development

    All settings are accessed via the global `settings` instance.
    """

    # -------------------------------------------------------------------------
    # Supabase Configuration
    # -------------------------------------------------------------------------
    # These are required - app won't start without them

    SUPABASE_URL: str = Field(
        ...,  # ... means required (no default)
        description="Supabase project URL (e.g., https://xxx.supabase.co)"
    )

    SUPABASE_ANON_KEY: str = Field(
        ...,
        description="Supabase anon/public API key"
    )

    SUPABASE_SERVICE_KEY: str = Field(
        ...,
        description="Supabase service_role key (bypasses RLS, used for admin auth calls)"
    )

    SUPABASE_JWT_SECRET: str | None = Field(
        default=None,
        description="Legacy HS256 JWT secret. Leave unset for projects using asymmetric (JWKS) keys"
    )

    # -------------------------------------------------------------------------
    # Auth Settings
    # -------------------------------------------------------------------------

    AUTH_COOKIE_NAME: str = Field(
        default="sb-access-token",
        description="Cookie holding the access token when no Authorization header is sent"
    )

    JWKS_CACHE_TTL_SECONDS: int = Field(
        default=3600,
        ge=60,
        description="How long fetched JWKS signing keys are reused"
    )

    # -------------------------------------------------------------------------
    # AI Insights Configuration
    # -------------------------------------------------------------------------
    # Optional - insight endpoints answer 503 when no key is configured

    AI_API_KEY: str | None = Field(
        default=None,
        description="API key for the OpenAI-compatible insights provider"
    )

    AI_BASE_URL: str = Field(
        default="https://api.deepseek.com",
        description="Base URL of the OpenAI-compatible chat completions API"
    )

    AI_MODEL: str = Field(
        default="deepseek-chat",
        description="Model used for production insights (must support JSON mode)"
    )

    AI_TEMPERATURE: float = Field(
        default=0.5,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for insight generation"
    )

    AI_MAX_TOKENS: int = Field(
        default=1500,
        ge=100,
        le=8000,
        description="Upper bound on tokens generated per insight request"
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Current environment"
    )

    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode (verbose logging, auto-reload)"
    )

    API_HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the API server to"
    )

    API_PORT: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port for the API server"
    )

    # CORS origins (comma-separated string that gets parsed)
    CORS_ORIGINS: str = Field(
        default="http://localhost:3000",
        description="Allowed CORS origins (comma-separated)"
    )

    # -------------------------------------------------------------------------
    # Storage Settings
    # -------------------------------------------------------------------------

    REPORTS_BUCKET: str = Field(
        default="reports",
        description="Storage bucket for report attachments"
    )

    FILES_BUCKET: str = Field(
        default="project-files",
        description="Storage bucket for project documents"
    )

    SIGNED_URL_TTL_SECONDS: int = Field(
        default=3600,
        ge=60,
        description="Lifetime of signed download URLs"
    )

    MAX_ATTACHMENT_SIZE_MB: int = Field(
        default=5,
        ge=1,
        le=100,
        description="Maximum upload size in MB for files and report attachments"
    )

    ALLOWED_ATTACHMENT_TYPES: str = Field(
        default="image/jpeg,image/jpg,image/png,image/gif,image/webp,application/pdf",
        description="Allowed upload MIME types (comma-separated)"
    )

    # -------------------------------------------------------------------------
    # Pydantic Settings Configuration
    # -------------------------------------------------------------------------

    model_config = SettingsConfigDict(
        # Load from .env file in project root
        env_file=".env",
        env_file_encoding="utf-8",
        # Treat empty values as unset
        env_ignore_empty=True,
        # Case-sensitive environment variable names
        case_sensitive=True,
    )

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def cors_origins_list(self) -> list[str]:
        """
        Parse CORS_ORIGINS string into a list.

        Example: "http://localhost:3000, https://crew.example.com" -> ["http://localhost:3000", "https://crew.example.com"]
        """
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def allowed_attachment_types_list(self) -> list[str]:
        """
        Parse ALLOWED_ATTACHMENT_TYPES string into a list.

        Example: "image/png, application/pdf" -> ["image/png", "application/pdf"]
        """
        return [
            mime.strip().lower()
            for mime in self.ALLOWED_ATTACHMENT_TYPES.split(",")
            if mime.strip()
        ]

    @property
    def max_attachment_size_bytes(self) -> int:
        """Convert MB to bytes for upload size validation."""
        return self.MAX_ATTACHMENT_SIZE_MB * 1024 * 1024

    @property
    def jwks_url(self) -> str:
        """Supabase JWKS endpoint for asymmetric token verification."""
        return f"{self.SUPABASE_URL.rstrip('/')}/auth/v1/.well-known/jwks.json"

    @property
    def ai_enabled(self) -> bool:
        """Whether an insights provider key is configured."""
        return bool(self.AI_API_KEY)

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached Settings instance.

    Using lru_cache ensures we only parse .env and validate once,
    not on every access.

    Returns:
        Settings: The application settings instance
    """
    return Settings()


# Global settings instance for easy importing
# Usage: from app.config import settings
settings = get_settings()
