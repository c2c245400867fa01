"""Payment provider abstraction for checkout."""

from .base import ChargeRequest, ChargeResult, ChargeStatus, ErrorDetail, PaymentProvider
from .checkout import CheckoutFlow, CheckoutOutcome
from .dispatcher import PaymentDispatcher
from .errors import (
    InvalidAmount,
    InvalidStrategy,
    NoStrategySelected,
    PaymentError,
    UnknownProvider,
    UnsupportedCurrency,
)
from .factory import build_registry, get_payment_provider, get_registry
from .registry import ProviderRegistry

__all__ = [
    "ChargeRequest",
    "ChargeResult",
    "ChargeStatus",
    "CheckoutFlow",
    "CheckoutOutcome",
    "ErrorDetail",
    "InvalidAmount",
    "InvalidStrategy",
    "NoStrategySelected",
    "PaymentDispatcher",
    "PaymentError",
    "PaymentProvider",
    "ProviderRegistry",
    "UnknownProvider",
    "UnsupportedCurrency",
    "build_registry",
    "get_payment_provider",
    "get_registry",
]
