from __future__ import annotations

from functools import lru_cache

from ..logging_config import get_logger
from ..settings import Settings, settings
from .base import PaymentProvider
from .braintree import BraintreeProvider
from .mock import MockPaymentProvider
from .paypal import PayPalProvider
from .registry import ProviderRegistry
from .stripe import StripeProvider

logger = get_logger(__name__)


def build_registry(config: Settings | None = None) -> ProviderRegistry:
    """Register every provider whose credentials are present in ``config``."""
    config = config or settings
    registry = ProviderRegistry()
    timeouts = {
        "timeout": config.PAYMENT_TIMEOUT_SECONDS,
        "connect_timeout": config.PAYMENT_CONNECT_TIMEOUT_SECONDS,
    }

    registry.register("mock", MockPaymentProvider(behavior=config.MOCK_PAYMENT_BEHAVIOR))

    if config.stripe_enabled:
        registry.register(
            "stripe",
            StripeProvider(
                secret_key=config.STRIPE_SECRET_KEY,
                currencies=config.stripe_currencies,
                api_base=config.STRIPE_API_BASE,
                **timeouts,
            ),
        )
    else:
        logger.info("payment_provider_skipped", provider="stripe", reason="missing credentials")

    if config.braintree_enabled:
        registry.register(
            "braintree",
            BraintreeProvider(
                public_key=config.BRAINTREE_PUBLIC_KEY,
                private_key=config.BRAINTREE_PRIVATE_KEY,
                merchant_account_id=config.BRAINTREE_MERCHANT_ACCOUNT_ID,
                currencies=config.braintree_currencies,
                api_base=config.BRAINTREE_API_BASE,
                **timeouts,
            ),
        )
    else:
        logger.info("payment_provider_skipped", provider="braintree", reason="missing credentials")

    if config.paypal_enabled:
        registry.register(
            "paypal",
            PayPalProvider(
                client_id=config.PAYPAL_CLIENT_ID,
                client_secret=config.PAYPAL_CLIENT_SECRET,
                currencies=config.paypal_currencies,
                api_base=config.PAYPAL_API_BASE,
                **timeouts,
            ),
        )
    else:
        logger.info("payment_provider_skipped", provider="paypal", reason="missing credentials")

    return registry


@lru_cache(maxsize=1)
def get_registry() -> ProviderRegistry:
    return build_registry(settings)


def get_payment_provider(name: str | None = None) -> PaymentProvider:
    return get_registry().resolve(name or settings.PAYMENT_PROVIDER)


__all__ = ["build_registry", "get_payment_provider", "get_registry"]
