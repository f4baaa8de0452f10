from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///./marketplace.db"

    # Email
    email_mode: str = "dev"  # dev | prod
    sendgrid_api_key: Optional[str] = None
    email_from: str = "noreply@marketplace.example"
    email_from_name: str = "Freelance Marketplace"

    # Links embedded in emails
    frontend_url: str = "http://localhost:3000"

    # Accounts provisioned from proposals
    bcrypt_rounds: int = 10

    # Background worker
    digest_hour_utc: int = 6
    auto_close_interval_seconds: int = 60
    content_posts_per_day: int = 5
    content_hour_start: int = 6
    content_hour_end: int = 23

    # App
    debug: bool = False
    allowed_origins: Optional[str] = None  # comma-separated

    def get_frontend_url(self) -> str:
        """Frontend base URL without a trailing slash."""
        return self.frontend_url.rstrip("/")


settings = Settings()
