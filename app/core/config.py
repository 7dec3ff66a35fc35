"""Application configuration"""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # API
    API_PREFIX: str = "/api"
    PROJECT_NAME: str = "HR Announcements API"
    VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: Optional[str] = None

    # Security
    JWT_SECRET: str = "change-me-in-production"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_MINUTES: int = 1440  # 24 hours

    # Database
    DATABASE_URL: str = "postgresql://localhost:5432/hrcomms"

    # URLs
    # WHY: Announcement e-mails link back to the HR portal
    FRONTEND_URL: str = "http://localhost:3000"
    APP_NAME: str = "HR Portal"

    # Sender identity used for every outgoing announcement e-mail
    MAIL_FROM_ADDRESS: str = "noreply@localhost"
    MAIL_FROM_NAME: Optional[str] = None

    # SMTP relay
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USERNAME: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_USE_TLS: bool = True
    SMTP_TIMEOUT: float = 30.0

    # Resend HTTP API (alternative to SMTP)
    RESEND_API_KEY: Optional[str] = None

    # Announcement dispatch
    # WHY: 1 keeps the per-request send loop sequential; raise it to overlap
    # slow SMTP round-trips while keeping the batch inside the request.
    DISPATCH_MAX_CONCURRENCY: int = 1

    # CORS
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    @property
    def smtp_enabled(self) -> bool:
        """Check if an SMTP relay is configured."""
        return bool(self.SMTP_HOST)

    @property
    def mail_from_name(self) -> str:
        """Display name for the sender identity (falls back to APP_NAME)."""
        return self.MAIL_FROM_NAME or self.APP_NAME

    @property
    def async_database_url(self) -> str:
        """Get async database URL"""
        return self.DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://")


settings = Settings()
