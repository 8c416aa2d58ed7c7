# ==== APPLICATION SETTINGS CONFIGURATION ==== #

"""
Application settings configuration for the back office API.

This module provides centralized configuration management using Pydantic Settings
with environment variable loading for database, documents, email delivery,
observability and workflow components.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


# ==== MAIN SETTINGS CLASS ==== #


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Groups configuration for persistence, authentication, document numbering,
    document delivery and observability. Only ``DATABASE_URL`` is mandatory.
    """

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=True,
        extra='ignore'
    )

    # --► CORE APPLICATION SETTINGS
    APP_ENV: str = "dev"
    SERVICE_NAME: str = "backoffice-api"
    SERVICE_VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = False
    LOG_DIR: str = "logs"

    # --► DATABASE CONFIGURATION
    DATABASE_URL: str
    DATABASE_ECHO: bool = False

    # --► REDIS CONFIGURATION (IDEMPOTENCY KEYS)
    REDIS_URL: str = "redis://localhost:6379/0"
    IDEMPOTENCY_TTL_SECONDS: int = 86_400

    # --► AUTHENTICATION SETTINGS
    JWT_SECRET: str = "change-me-please-and-keep-long-random"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_TTL_HOURS: int = 12

    # --► CORS
    CORS_ALLOW_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # --► DOCUMENT NUMBERING
    DOCUMENT_NUMBER_PADDING: int = 5
    QUOTE_PREFIX: str = "QUO"
    INVOICE_PREFIX: str = "INV"
    PO_PREFIX: str = "PO"

    # --► DOCUMENT DEFAULTS
    INVOICE_DUE_DAYS: int = 30
    QUOTE_VALIDITY_DAYS: int = 30
    DEFAULT_CURRENCY: str = "GBP"
    DEFAULT_TAX_RATE: float = 0.0

    # --► EMAIL DELIVERY
    EMAIL_PROVIDER: str = "console"  # console|smtp|sendgrid
    EMAIL_FROM: str = "noreply@example.com"
    EMAIL_FROM_NAME: str | None = None
    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 587
    SMTP_USERNAME: str | None = None
    SMTP_PASSWORD: str | None = None
    SMTP_USE_TLS: bool = True
    SMTP_TIMEOUT_SECONDS: int = 10
    SENDGRID_API_KEY: str | None = None
    SENDGRID_API_URL: str = "https://api.sendgrid.com/v3/mail/send"

    # --► FILE STORAGE
    FILE_STORAGE_PATH: str = "./data/files"
    FILE_STORAGE_BASE_URL: str = "/api/files"
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024
    MAX_UPLOAD_FILES: int = 10

    # --► PAGINATION
    DEFAULT_PAGE_SIZE: int = 50
    MAX_PAGE_SIZE: int = 200

    # --► OBSERVABILITY CONFIGURATION
    OTEL_EXPORTER_OTLP_ENDPOINT: str | None = None
    OTEL_EXPORTER_OTLP_HEADERS: str | None = None
    OTEL_SERVICE_NAME: str | None = None
    OTEL_RESOURCE_ATTRIBUTES: str | None = None
    PROMETHEUS_SCRAPE_PATH: str = "/metrics"

    # --► PREFECT WORKFLOW ORCHESTRATION
    PREFECT_API_URL: str = "http://localhost:4200/api"
    PREFECT_WORK_POOL: str = "default-agent-pool"
    PREFECT_FLOW_NAME: str = "document_maintenance_nightly"
    PREFECT_DEPLOYMENT_NAME: str = "nightly"
    PREFECT_SCHEDULE_CRON: str = "0 1 * * *"


# ==== GLOBAL SETTINGS INSTANCE ==== #


# Global settings instance for application-wide access
settings = Settings()


def get_settings() -> Settings:
    """
    Get global settings instance.

    Returns:
        Settings: Global application settings instance
    """
    return settings
