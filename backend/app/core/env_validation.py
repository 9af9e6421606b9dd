"""
Runtime Environment Validation Module

Validates the environment at application startup. If validation fails,
the application refuses to start (hard fail with exit code 1).
"""

import os
import sys
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProductionSettings(BaseSettings):
    """
    Strict validation schema for the deployment environment.

    Fields without defaults MUST be present, or the application will not start.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================================================
    # CRITICAL: Database Configuration
    # ========================================================================
    database_url: str  # REQUIRED: PostgreSQL connection string

    # ========================================================================
    # CRITICAL: Firebase Authentication
    # ========================================================================
    firebase_project_id: Optional[str] = None
    google_application_credentials: Optional[str] = None
    firebase_disabled: bool = False

    # ========================================================================
    # CRITICAL: Storage Provider
    # ========================================================================
    storage_provider: str = "local"  # "gcs", "s3" or "local"
    local_storage_path: Optional[str] = None
    gcs_bucket_name: Optional[str] = None
    gcs_project_id: Optional[str] = None
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_region: Optional[str] = None
    s3_bucket_name: Optional[str] = None

    # ========================================================================
    # Application Configuration
    # ========================================================================
    app_name: str = "Real Estate Portfolio"
    debug: bool = False
    api_v1_prefix: str = "/v1"
    allowed_origins: str  # REQUIRED: Comma-separated list of allowed origins

    # ========================================================================
    # Email + signed links
    # ========================================================================
    resend_api_key: Optional[str] = None
    unsubscribe_secret: Optional[str] = None
    cron_secret: Optional[str] = None
    default_timezone: str = "Australia/Sydney"


def _fail(message: str) -> None:
    print(f"❌ FATAL: {message}", file=sys.stderr)
    sys.exit(1)


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
        sys.exit(1)

    # 1. CORS: no wildcard outside debug
    if not settings.debug:
        origins = [o.strip() for o in settings.allowed_origins.split(",")]
        if "*" in origins:
            _fail("Wildcard CORS origin (*) detected in production mode.")

    # 2. Storage provider configuration
    if settings.storage_provider == "gcs":
        if not settings.gcs_bucket_name or not settings.gcs_project_id:
            _fail("GCS_BUCKET_NAME and GCS_PROJECT_ID required when STORAGE_PROVIDER=gcs")
    elif settings.storage_provider == "s3":
        if not settings.s3_bucket_name or not settings.aws_access_key_id or not settings.aws_secret_access_key:
            _fail("S3_BUCKET_NAME, AWS_ACCESS_KEY_ID, and AWS_SECRET_ACCESS_KEY required when STORAGE_PROVIDER=s3")
    elif settings.storage_provider != "local":
        _fail(f"Invalid STORAGE_PROVIDER '{settings.storage_provider}'. Must be 'gcs', 's3' or 'local'.")

    # 3. Firebase
    if not settings.firebase_disabled:
        if not settings.firebase_project_id:
            _fail("FIREBASE_PROJECT_ID is required unless FIREBASE_DISABLED=true")
        if settings.google_application_credentials and not os.path.exists(settings.google_application_credentials):
            _fail(f"Firebase credentials file not found: {settings.google_application_credentials}")

    # 4. Database URL
    if not settings.database_url.startswith("postgresql"):
        _fail("DATABASE_URL must be a PostgreSQL connection string (postgresql:// or postgresql+asyncpg://)")

    # 5. Email delivery and unsubscribe links
    if not settings.debug:
        if not settings.resend_api_key:
            _fail("RESEND_API_KEY is required in production mode")
        if not settings.unsubscribe_secret:
            _fail("UNSUBSCRIBE_SECRET is required in production mode")

    # 6. Default timezone must resolve
    try:
        ZoneInfo(settings.default_timezone)
    except (ZoneInfoNotFoundError, ValueError):
        _fail(f"DEFAULT_TIMEZONE '{settings.default_timezone}' is not a valid IANA timezone")

    print("✅ Environment validation passed")
    print(f"   App: {settings.app_name}")
    print(f"   Debug: {settings.debug}")
    print(f"   Storage: {settings.storage_provider}")
    print(f"   CORS Origins: {settings.allowed_origins}")

    return settings


if __name__ == "__main__":
    validate_environment()
    print("\n✅ All environment variables are valid!")
