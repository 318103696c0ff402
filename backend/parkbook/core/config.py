# backend/parkbook/core/config.py
import logging
import os
from pathlib import Path
from typing import Set

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # backend/.env
    logger.debug("[CONFIG] Looking for .env at: %s (exists=%s)", env_path, env_path.exists())
    load_dotenv(env_path)


NON_PROD_SITE_MODES: Set[str] = {
    "local",
    "dev",
    "development",
    "test",
    "stg",
    "stage",
    "staging",
    "preview",
}
PROD_SITE_MODES: Set[str] = {"prod", "production", "live"}


def _classify_site_mode(raw_site_mode: str | None) -> tuple[str, bool]:
    """Return normalized site mode and whether it is a production mode."""

    normalized = (raw_site_mode or "").strip().lower()
    return normalized, normalized in PROD_SITE_MODES


class Settings(BaseSettings):
    # Database
    database_url: str = Field(
        default="sqlite:///./parkbook.db",
        description="SQLAlchemy URL of the managed Postgres database",
    )
    db_echo: bool = False

    site_mode: str = Field(default="local", description="local|dev|stg|prod")

    # Supabase Auth: access tokens are HS256 JWTs signed with the project JWT secret
    supabase_url: str = ""
    supabase_jwt_secret: SecretStr = Field(
        default=SecretStr(""),
        description="Secret used to verify Supabase access tokens",
    )
    supabase_jwt_audience: str = "authenticated"
    jwt_algorithm: str = "HS256"

    # Stripe Configuration
    stripe_secret_key: SecretStr = Field(
        default=SecretStr(""),
        description="Stripe secret key for backend API calls",
    )
    stripe_webhook_secret: SecretStr = Field(
        default=SecretStr(""),
        description="Signing secret of the checkout webhook endpoint",
    )
    stripe_currency: str = Field(default="jpy", description="Default currency for payments")
    stripe_webhook_tolerance_seconds: int = Field(default=300, ge=0)
    webhook_claim_timeout_seconds: int = Field(
        default=300,
        ge=1,
        description="Age after which a ledger entry stuck in processing may be claimed again",
    )

    # Frontend URL used for checkout redirects when the request has no Origin header
    frontend_url: str = "http://localhost:3000"
    cors_allowed_origins: str = Field(
        default="http://localhost:3000",
        description="Comma separated list of origins allowed by CORS",
    )

    # Catalogue
    almost_full_threshold: int = Field(
        default=3,
        ge=0,
        description="Remaining seats at or below which a program is flagged almost full",
    )

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("site_mode", mode="before")
    @classmethod
    def _normalize_site_mode(cls, value: object) -> object:
        if isinstance(value, str):
            return _classify_site_mode(value)[0] or "local"
        return value

    @property
    def cors_origins(self) -> list[str]:
        return [item.strip() for item in self.cors_allowed_origins.split(",") if item.strip()]

    @property
    def is_production(self) -> bool:
        return _classify_site_mode(self.site_mode)[1]

    @property
    def environment(self) -> str:
        return "production" if self.is_production else "development"

    @property
    def webhook_secret_value(self) -> str:
        return self.stripe_webhook_secret.get_secret_value()


settings = Settings()
