"""Application configuration using Pydantic Settings."""

from enum import Enum
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageProvider(str, Enum):
    GCS = "gcs"
    S3 = "s3"
    LOCAL = "local"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_name: str = "Real Estate Portfolio"
    debug: bool = False
    api_v1_prefix: str = "/v1"
    app_url: str = "http://localhost:3000"
    allowed_origins: str = "http://localhost:3000"
    log_level: str = "INFO"

    # Database
    database_url: str = "postgresql+asyncpg://localhost/real_estate_portfolio"

    # Firebase Auth
    firebase_project_id: Optional[str] = None
    google_application_credentials: Optional[str] = None
    firebase_disabled: bool = False

    # Storage
    storage_provider: StorageProvider = StorageProvider.LOCAL
    local_storage_path: str = "./blob-storage"

    # GCS Config
    gcs_bucket_name: Optional[str] = None
    gcs_project_id: Optional[str] = None

    # S3 Config
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_region: Optional[str] = "ap-southeast-2"
    s3_bucket_name: Optional[str] = None

    # Uploads
    max_upload_size_mb: int = 10

    # Email (Resend)
    resend_api_key: Optional[str] = None
    resend_api_url: str = "https://api.resend.com"
    email_from: str = "Real Estate Portfolio <notifications@example.com>"
    email_rate_limit_per_hour: int = 10

    # Notifications
    large_expense_threshold_cents: int = 1_000_000
    notification_retention_days: int = 90
    default_timezone: str = "Australia/Sydney"

    # Signed links
    unsubscribe_secret: str = "change-me-unsubscribe-secret"
    unsubscribe_token_ttl_days: int = 90
    invitation_ttl_days: int = 7

    # Scheduled jobs
    cron_secret: Optional[str] = None

    @property
    def bucket_name(self) -> str:
        """Get the appropriate bucket name based on storage provider."""
        if self.storage_provider == StorageProvider.GCS:
            if not self.gcs_bucket_name:
                raise ValueError("GCS_BUCKET_NAME required when STORAGE_PROVIDER=gcs")
            return self.gcs_bucket_name
        elif self.storage_provider == StorageProvider.S3:
            if not self.s3_bucket_name:
                raise ValueError("S3_BUCKET_NAME required when STORAGE_PROVIDER=s3")
            return self.s3_bucket_name
        return self.local_storage_path

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
