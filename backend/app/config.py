"""Application configuration."""

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Settings
    APP_NAME: str = "CRM Workflow Engine"
    APP_VERSION: str = "1.0.0"
    API_V1_PREFIX: str = "/api/v1"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"  # development, staging, production

    # Database Settings
    DATABASE_URL: str = "sqlite+aiosqlite:///./crm_workflows.db"
    SQLALCHEMY_ECHO: bool = False
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10

    # Workflow engine
    WORKFLOW_HTTP_ALLOWLIST: str = ""  # comma-separated hostnames; empty = any public host
    WORKFLOW_MAX_DEPTH: int = 200
    WORKFLOW_MAX_DELAY_MS: int = 0  # 0 = no cap on Delay nodes
    HTTP_TIMEOUT_SECONDS: float = 30.0
    EVENT_QUEUE_SIZE: int = 1000

    # Connector fallbacks (used when a tenant has no stored integration)
    OPENAI_API_KEY: str = ""
    OPENAI_API_URL: str = "https://api.openai.com/v1/chat/completions"
    TELEGRAM_BOT_TOKEN: str = ""
    SLACK_WEBHOOK_URL: str = ""

    # SMTP (default email sender)
    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM_ADDRESS: str = "workflows@localhost"
    SMTP_USE_TLS: bool = True

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"  # json or text

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"

    @property
    def http_allowlist(self) -> list[str]:
        """Parse WORKFLOW_HTTP_ALLOWLIST into lowercase hostnames."""
        return [
            entry.strip().lower()
            for entry in self.WORKFLOW_HTTP_ALLOWLIST.split(",")
            if entry.strip()
        ]

    class Config:
        """Pydantic config."""

        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings.

    Uses caching to ensure settings are loaded only once.

    Returns:
        Settings object with all configuration values
    """
    return Settings()
