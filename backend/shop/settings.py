from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

REPO_ROOT = Path(__file__).resolve().parents[2]
ENV_FILE = REPO_ROOT / ".env"


def _split_codes(raw: str | None) -> frozenset[str]:
    if not raw:
        return frozenset()
    return frozenset(part.strip().upper() for part in raw.split(",") if part.strip())


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE), env_file_encoding="utf-8", extra="ignore"
    )

    # console logs instead of JSON
    DEBUG: bool = False
    ENVIRONMENT: str = "development"

    SHOP_CURRENCY: str = "USD"

    # Payments
    PAYMENT_PROVIDER: str = "mock"
    PAYMENT_TIMEOUT_SECONDS: float = 15.0
    PAYMENT_CONNECT_TIMEOUT_SECONDS: float = 5.0
    PAYMENT_MAX_ATTEMPTS: int = 1  # total attempts per checkout, retries reuse the idempotency key

    # Stripe
    STRIPE_SECRET_KEY: str | None = None
    STRIPE_API_BASE: str = "https://api.stripe.com"
    STRIPE_CURRENCIES: str = "USD,EUR,GBP,CAD,AUD,JPY,CHF,SEK,NOK,DKK"

    # Braintree (one currency per merchant account)
    BRAINTREE_PUBLIC_KEY: str | None = None
    BRAINTREE_PRIVATE_KEY: str | None = None
    BRAINTREE_MERCHANT_ACCOUNT_ID: str | None = None
    BRAINTREE_API_BASE: str = "https://payments.sandbox.braintree-api.com"
    BRAINTREE_CURRENCIES: str = "USD"

    # PayPal
    PAYPAL_CLIENT_ID: str | None = None
    PAYPAL_CLIENT_SECRET: str | None = None
    PAYPAL_API_BASE: str = "https://api-m.sandbox.paypal.com"
    PAYPAL_CURRENCIES: str = "USD,EUR,GBP,CAD,AUD,JPY"

    # Local gateway used in development and tests
    MOCK_PAYMENT_BEHAVIOR: Literal["succeed", "decline", "fail", "timeout"] = "succeed"

    @property
    def stripe_currencies(self) -> frozenset[str]:
        return _split_codes(self.STRIPE_CURRENCIES)

    @property
    def braintree_currencies(self) -> frozenset[str]:
        return _split_codes(self.BRAINTREE_CURRENCIES)

    @property
    def paypal_currencies(self) -> frozenset[str]:
        return _split_codes(self.PAYPAL_CURRENCIES)

    @property
    def stripe_enabled(self) -> bool:
        return bool(self.STRIPE_SECRET_KEY)

    @property
    def braintree_enabled(self) -> bool:
        return bool(self.BRAINTREE_PUBLIC_KEY and self.BRAINTREE_PRIVATE_KEY)

    @property
    def paypal_enabled(self) -> bool:
        return bool(self.PAYPAL_CLIENT_ID and self.PAYPAL_CLIENT_SECRET)


settings = Settings()
