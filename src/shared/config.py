from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.errors import ConfigurationError


class Settings(BaseSettings):
    """Global storefront settings, read from ``STOREFRONT_*`` environment variables."""

    # Application
    ENVIRONMENT: Literal["development", "test", "staging", "production"] = "development"
    LOG_LEVEL: Optional[str] = None
    LOG_DIR: Optional[Path] = None
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ]

    # Pricing
    CURRENCY: str = "usd"
    FREE_SHIPPING_THRESHOLD: float = Field(default=50.0, ge=0)
    FLAT_SHIPPING_FEE: float = Field(default=9.99, ge=0)
    TAX_RATE: float = Field(default=0.08, ge=0, le=1)

    # Orders and returns
    CARRIER_NAME: str = "Storefront Logistics"
    DELIVERY_ESTIMATE_DAYS: int = Field(default=7, ge=0)
    RETURN_WINDOW_DAYS: int = Field(default=30, ge=0)

    # Cart persistence
    CART_STORAGE_DIR: Path = Path(".storefront")
    CART_SESSION_KEY: str = "storefront-cart"

    # Payments
    PAYMENT_GATEWAY: Literal["fake", "stripe"] = "fake"
    STRIPE_SECRET_KEY: Optional[SecretStr] = None
    PAYMENT_SERVER_URL: str = "http://localhost:5003"
    PAYMENT_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0)

    # Identity provider
    IDENTITY_API_KEY: Optional[SecretStr] = None
    IDENTITY_PROVIDER: Literal["fake", "firebase"] = "fake"
    IDENTITY_BASE_URL: str = "https://identitytoolkit.googleapis.com/v1"
    IDENTITY_TIMEOUT_SECONDS: float = Field(default=10.0, gt=0)

    # Catalogue
    CATALOG_BASE_URL: str = "https://fakestoreapi.com"
    CATALOG_CACHE_TTL_SECONDS: float = Field(default=300.0, ge=0)
    CATALOG_TIMEOUT_SECONDS: float = Field(default=10.0, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="STOREFRONT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("CURRENCY")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        v = v.strip().lower()
        if len(v) != 3:
            raise ValueError("Invalid currency code: expected ISO4217 length 3")
        return v

    @field_validator("PAYMENT_SERVER_URL", "CATALOG_BASE_URL", "IDENTITY_BASE_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    def require_payment_key(self) -> str:
        """Return the gateway secret key, failing hard when it is missing."""
        if self.STRIPE_SECRET_KEY is None or not self.STRIPE_SECRET_KEY.get_secret_value():
            raise ConfigurationError("STOREFRONT_STRIPE_SECRET_KEY is not set")
        return self.STRIPE_SECRET_KEY.get_secret_value()

    def require_identity_key(self) -> str:
        if self.IDENTITY_API_KEY is None or not self.IDENTITY_API_KEY.get_secret_value():
            raise ConfigurationError("STOREFRONT_IDENTITY_API_KEY is not set")
        return self.IDENTITY_API_KEY.get_secret_value()


@lru_cache
def get_settings() -> Settings:
    """
    Return the global settings instance, cached.
    """
    return Settings()
