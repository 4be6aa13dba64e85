# backend/rideshare/core/config.py
from decimal import Decimal
import logging
import os
from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


class Settings(BaseSettings):
    environment: Literal["development", "test", "production"] = Field(
        default="development", description="Deployment environment"
    )
    log_level: str = Field(default="INFO", description="Root log level")

    database_url: str = Field(
        default="sqlite:///./rideshare.db",
        description="SQLAlchemy database URL (PostgreSQL in production)",
    )
    database_echo: bool = Field(default=False, description="Echo SQL statements")

    secret_key: SecretStr = Field(
        default=SecretStr("change-me-in-production"),
        description="Shared secret used to verify identity provider tokens",
    )
    jwt_algorithm: str = Field(default="HS256")
    access_token_expire_minutes: int = Field(default=60, ge=1)

    # Pricing
    commission_rate: Decimal = Field(
        default=Decimal("0.10"),
        description="Platform share of the rental subtotal, deducted from owner earnings",
    )
    service_fee_rate: Decimal = Field(
        default=Decimal("0.05"),
        description="Fee added on top of the subtotal and paid by the renter",
    )

    # Notifications
    notification_timeout_seconds: float = Field(
        default=3.0,
        gt=0,
        description="Deliveries older than this are dropped instead of written",
    )
    notification_max_workers: int = Field(default=4, ge=1)

    # Payments
    auto_confirm_on_payment: bool = Field(
        default=True, description="Confirm a pending booking when its payment succeeds"
    )
    payment_webhook_secret: SecretStr = Field(
        default=SecretStr("change-me-webhook-secret"),
        description="Shared secret sent by the payment collaborator in X-Webhook-Secret",
    )

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("commission_rate", "service_fee_rate")
    @classmethod
    def _validate_rate(cls, value: Decimal) -> Decimal:
        if value < 0 or value >= 1:
            raise ValueError("rate must be within [0, 1)")
        return value

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


settings = Settings()
