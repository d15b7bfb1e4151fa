"""Application configuration with environment variables."""

from dataclasses import dataclass

from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class SmtpConfig:
    """SMTP connection settings handed to the email transport at startup."""

    host: str
    port: int
    username: str
    password: str
    from_email: str
    from_name: str
    use_tls: bool = True
    timeout_seconds: float = 20.0


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"
    VERSION: str = "0.1.0"

    # Database
    DATABASE_URL: str = "sqlite+pysqlite:///./consultdesk.db"

    # Public links in emails point here (confirm/reschedule pages)
    PUBLIC_BASE_URL: str = "http://localhost:8000"

    # Branding used in subjects, pages and the From header
    BRAND_NAME: str = "AB Consultants"

    # Fallback recipient when a client has no assigned consultant
    DEFAULT_CONSULTANT_EMAIL: str = "admin@ab-consultants.fr"

    # Daily reminder run (triggered by external cron at this local schedule)
    REMINDER_TIMEZONE: str = "Indian/Reunion"
    REMINDER_CRON: str = "0 8 * * *"

    # Internal scheduled endpoints (cron jobs)
    INTERNAL_SECRET: str = ""

    # SMTP transport
    SMTP_HOST: str = "smtp.office365.com"
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM: str = ""  # Falls back to SMTP_USERNAME
    SMTP_USE_TLS: bool = True

    # Resend HTTP API (used instead of SMTP when set)
    RESEND_API_KEY: str = ""

    # Upper bound for a single email send
    EMAIL_TIMEOUT_SECONDS: float = 20.0

    # Rate limiting for public token pages (requests per minute)
    RATE_LIMIT_PUBLIC: int = 30
    REDIS_URL: str = ""  # Shared limiter storage across workers

    # Error Tracking (optional, set in production)
    SENTRY_DSN: str = ""

    @property
    def smtp_configured(self) -> bool:
        return bool(self.SMTP_USERNAME and self.SMTP_PASSWORD)

    @property
    def smtp_config(self) -> SmtpConfig:
        """Build the immutable SMTP config struct from settings."""
        return SmtpConfig(
            host=self.SMTP_HOST,
            port=self.SMTP_PORT,
            username=self.SMTP_USERNAME,
            password=self.SMTP_PASSWORD,
            from_email=self.SMTP_FROM or self.SMTP_USERNAME,
            from_name=self.BRAND_NAME,
            use_tls=self.SMTP_USE_TLS,
            timeout_seconds=self.EMAIL_TIMEOUT_SECONDS,
        )


settings = Settings()
