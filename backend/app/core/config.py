"""
Configuration settings for the application.
"""
import logging
from pathlib import Path
from typing import Any, List, Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator

logger = logging.getLogger(__name__)

# Load environment variables from .env file if it exists
env_path = Path(__file__).resolve().parent.parent.parent / ".env"

if env_path.exists():
    load_dotenv(dotenv_path=env_path)
    logger.debug(f"[ENV] Loaded .env from: {env_path}")


def _to_async_url(url: str) -> str:
    """Rewrite sync Postgres URLs so they use the asyncpg driver."""
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    """
    # API configuration
    API_PORT: int = Field(default=8000)
    API_HOST: str = Field(default="0.0.0.0")
    ENVIRONMENT: str = Field(default="production")
    LOG_LEVEL: str = Field(default="INFO")

    # Database configuration
    DB_HOST: str = Field(default="localhost")
    DB_PORT: str = Field(default="5432")
    DB_USER: Optional[str] = None
    DB_PASSWORD: Optional[str] = None
    DB_NAME: str = Field(default="Linkaday")

    DATABASE_URL: Optional[str] = Field(default=None, validate_default=True)
    # Privileged connection, only used by the payment webhook
    ADMIN_DATABASE_URL: Optional[str] = None

    # CORS configuration
    CORS_ORIGINS: str = Field(default="*")

    # Session cookie
    SESSION_SECRET_KEY: str = Field(...)
    SESSION_TTL_DAYS: int = Field(default=30)

    # LinkedIn OAuth (identity provider)
    LINKEDIN_CLIENT_ID: str = Field(...)
    LINKEDIN_CLIENT_SECRET: str = Field(...)

    # Public URL of this app (OAuth redirect, checkout return URLs)
    PUBLIC_APP_URL: Optional[str] = None

    # Stripe
    STRIPE_SECRET_KEY: Optional[str] = None
    STRIPE_WEBHOOK_SECRET: Optional[str] = None
    STRIPE_PRICE_ID: Optional[str] = None

    # Integrations
    N8N_PROFILE_WEBHOOK_URL: Optional[str] = None
    TELEGRAM_BOT_USERNAME: Optional[str] = None

    @field_validator("DATABASE_URL", mode="before")
    def assemble_db_uri(cls, v: Optional[str], info: Any) -> str:
        """
        Assemble the database URI if not provided.
        """
        if v:
            return _to_async_url(v)

        values = info.data
        user = values.get("DB_USER")
        password = values.get("DB_PASSWORD")
        if not user or not password:
            raise ValueError("DATABASE_URL or DB_USER/DB_PASSWORD must be set")
        host = values.get("DB_HOST")
        port = values.get("DB_PORT")
        name = values.get("DB_NAME")

        return f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{name}"

    @field_validator("ADMIN_DATABASE_URL", mode="before")
    def assemble_admin_db_uri(cls, v: Optional[str]) -> Optional[str]:
        return _to_async_url(v) if v else None

    @property
    def cors_origins(self) -> List[str]:
        """
        Parse the comma-separated CORS_ORIGINS value into a list of origins.
        """
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"

    @property
    def admin_database_url(self) -> str:
        return self.ADMIN_DATABASE_URL or self.DATABASE_URL

    def missing_stripe_checkout_settings(self) -> List[str]:
        """Names of the variables checkout cannot run without."""
        required = {
            "STRIPE_SECRET_KEY": self.STRIPE_SECRET_KEY,
            "STRIPE_PRICE_ID": self.STRIPE_PRICE_ID,
            "PUBLIC_APP_URL": self.PUBLIC_APP_URL,
        }
        return [name for name, value in required.items() if not value]

    class Config:
        """Config for the BaseSettings class."""
        env_file = ".env"
        case_sensitive = True
        extra = 'ignore'  # Ignore extra fields from environment


# Create settings object
settings = Settings()
