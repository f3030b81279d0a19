# Environment variables and configuration
# pydantic-settings reads .env -> core/config.py

from functools import lru_cache
from typing import Optional
from pydantic import SecretStr, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# When uvicorn runs directly on the host (no Docker) model_config.env_file=".env"
# resolves to backend/.env

class Settings(BaseSettings):

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_prefix="",
        case_sensitive=False,
    )

    # ========= project config =========
    PROJECT_NAME: str = "Catalog Pilot"
    ENVIRONMENT: str = "dev"
    API_PREFIX: str = "/api"
    LOG_LEVEL: str = Field("INFO", alias="LOG_LEVEL")


    # ========= CORS =========
    BACKEND_CORS_ORIGINS: str = "http://localhost:5173"
    FRONTEND_URL: str = Field("http://localhost:5173", alias="FRONTEND_URL")   # used to build invitation links


    # ========= Database =========
    # - inside docker the "db" service from docker-compose
    # - local tools (psql / scripts) can point DATABASE_URL at localhost
    DATABASE_URL: str = Field(
        default="postgresql+psycopg://cp_user:cp_pass@db:5432/catalog_pilot",
        alias="DATABASE_URL"
    )
    DB_POOL_SIZE: int = Field(10, alias="DB_POOL_SIZE")
    DB_MAX_OVERFLOW: int = Field(20, alias="DB_MAX_OVERFLOW")


    # ========= Firebase (identity) =========
    FIREBASE_PROJECT_ID: Optional[str] = Field(None, alias="FIREBASE_PROJECT_ID")
    FIREBASE_VERIFY_SIGNATURE: bool = Field(True, alias="FIREBASE_VERIFY_SIGNATURE")   # False only for local dev
    FIREBASE_CERTS_URL: str = Field(
        "https://www.googleapis.com/robot/v1/metadata/x509/securetoken@system.gserviceaccount.com",
        alias="FIREBASE_CERTS_URL",
    )
    FIREBASE_HTTP_TIMEOUT: int = Field(10, alias="FIREBASE_HTTP_TIMEOUT")


    # ========= BigCommerce API config =========
    BIGCOMMERCE_API_BASE: str = Field("https://api.bigcommerce.com/stores", alias="BIGCOMMERCE_API_BASE")
    BIGCOMMERCE_HTTP_TIMEOUT: int = Field(60, ge=1, alias="BIGCOMMERCE_HTTP_TIMEOUT")
    BIGCOMMERCE_HTTP_RETRIES: int = Field(2, ge=0, le=5, alias="BIGCOMMERCE_HTTP_RETRIES")      # 429/5xx only
    BIGCOMMERCE_HTTP_BACKOFF_MS: int = Field(500, ge=50, alias="BIGCOMMERCE_HTTP_BACKOFF_MS")
    BIGCOMMERCE_PAGE_SIZE: int = Field(50, ge=1, le=250, alias="BIGCOMMERCE_PAGE_SIZE")


    # ========= work order execution =========
    WORK_ORDER_BATCH_SIZE: int = Field(10, ge=1, alias="WORK_ORDER_BATCH_SIZE")
    BIGCOMMERCE_BATCH_PAUSE_SEC: float = Field(1.0, ge=0, alias="BIGCOMMERCE_BATCH_PAUSE_SEC")


    # ========= Stripe / billing =========
    STRIPE_SECRET_KEY: Optional[SecretStr] = Field(None, alias="STRIPE_SECRET_KEY")
    STRIPE_WEBHOOK_SECRET: Optional[SecretStr] = Field(None, alias="STRIPE_WEBHOOK_SECRET")
    STRIPE_PRICE_STARTER: str = Field("price_starter", alias="STRIPE_PRICE_STARTER")
    STRIPE_PRICE_PREMIUM: str = Field("price_premium", alias="STRIPE_PRICE_PREMIUM")


    # ========= SendGrid / invitations =========
    SENDGRID_API_KEY: Optional[SecretStr] = Field(None, alias="SENDGRID_API_KEY")
    MAIL_FROM: str = Field("noreply@catalogpilot.com", alias="MAIL_FROM")
    INVITATION_TTL_DAYS: int = Field(7, ge=1, alias="INVITATION_TTL_DAYS")


    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.BACKEND_CORS_ORIGINS.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    """Read once per process from the environment (including .env)."""
    return Settings()
