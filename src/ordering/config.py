"""Runtime settings for the Ordering service.

Values come from environment variables prefixed ``ORDERING_`` (for example
``ORDERING_RETENTION_WINDOW=PT3H``). The deployment environment is read from
``PROTEAN_ENV``, the same variable that selects the domain configuration.
"""

from datetime import timedelta
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENVIRONMENTS = ("development", "test", "production")


class OrderingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="ORDERING_", extra="ignore")

    environment: str = Field("development", validation_alias="PROTEAN_ENV")

    # Pending orders are cancelled after this long
    order_ttl_development: timedelta = Field(timedelta(minutes=20))
    order_ttl_production: timedelta = Field(timedelta(hours=1))
    expiry_interval_development: timedelta = Field(timedelta(seconds=60))
    expiry_interval_production: timedelta = Field(timedelta(minutes=15))

    # Cancelled orders are deleted after this long
    retention_window: timedelta = Field(timedelta(hours=2))
    retention_interval: timedelta = Field(timedelta(minutes=10))

    currency: str = Field("usd", min_length=3, max_length=3)
    amount_tolerance_minor_units: int = Field(1, ge=0)

    gateway_max_attempts: int = Field(3, ge=1)
    gateway_initial_backoff: float = Field(0.5, ge=0)
    gateway_max_backoff: float = Field(5.0, ge=0)
    stripe_secret_key: str | None = None
    stripe_webhook_secret: str = ""

    elevated_roles: list[str] = Field(default_factory=lambda: ["admin"])
    scheduler_enabled: bool = True

    @field_validator("environment")
    @classmethod
    def _known_environment(cls, value: str) -> str:
        value = value.lower()
        if value not in ENVIRONMENTS:
            raise ValueError(f"PROTEAN_ENV must be one of {', '.join(ENVIRONMENTS)}")
        return value

    @field_validator("currency")
    @classmethod
    def _lowercase_currency(cls, value: str) -> str:
        return value.lower()

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def order_ttl(self) -> timedelta:
        return self.order_ttl_production if self.is_production else self.order_ttl_development

    @property
    def expiry_interval(self) -> timedelta:
        return self.expiry_interval_production if self.is_production else self.expiry_interval_development


@lru_cache
def get_settings() -> OrderingSettings:
    return OrderingSettings()


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    get_settings.cache_clear()
