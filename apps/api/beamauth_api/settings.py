"""Application settings and configuration."""

import logging
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


def split_csv(value: Optional[str]) -> list[str]:
    """Split a comma-separated setting into trimmed, non-empty parts."""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: Optional[str] = None
    postgres_user: str = "beamauth"
    postgres_password: str = "beamauth_dev_password"
    postgres_db: str = "beamauth"
    postgres_port: int = 5432

    # Redis (Celery broker)
    redis_url: str = "redis://localhost:6379/0"

    # API
    environment: str = "development"
    log_level: str = "INFO"

    # Automated account used for expiration revocations
    system_username: str = "beamauth-system"

    # Expiration windows
    upcoming_verification_days: int = 7
    upcoming_authorization_days: int = 3

    # Email
    email_sender: str = "beamauth@localhost"
    smtp_server: Optional[str] = None
    smtp_port: int = 25
    admin_email_csv: Optional[str] = None  # upcoming expiration recipients
    ops_email_csv: Optional[str] = None  # expired recipients
    downgraded_email_csv: Optional[str] = None
    upcoming_expiration_subject: str = "Beam Authorization: Upcoming and Expired Authorizations"
    expired_subject: str = "Beam Authorization: Expired Authorizations"
    downgraded_subject: str = "Beam Authorization: Credited Control Verification Downgraded"
    staff_email_domain: str = "jlab.org"
    group_email_enabled: bool = False  # only the production host mails group leaders

    # Links and logbook
    proxy_hostname: str = "localhost"
    logbook_server: str = "logbooks.localhost"
    logbooks_csv: Optional[str] = None
    logbook_tags_csv: str = "Readme"
    logbook_timeout_seconds: int = 10

    @property
    def database_url_computed(self) -> str:
        """Compute database URL if not explicitly set."""
        if self.database_url:
            return self.database_url
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@localhost:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def logbooks(self) -> list[str]:
        """Logbooks receiving incident entries, defaulting to TLOG."""
        books = split_csv(self.logbooks_csv)
        if not books:
            logger.warning("Setting 'LOGBOOKS_CSV' not found, using default TLOG")
            books = ["TLOG"]
        return books

    def validate_production_settings(self):
        """Validate settings for production environment."""
        env = self.environment.lower()
        if env not in ("development", "test", "dev"):
            if not self.smtp_server:
                raise ValueError("SMTP_SERVER is required outside development.")
            if not split_csv(self.ops_email_csv):
                raise ValueError("OPS_EMAIL_CSV is required outside development.")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
