"""Error taxonomy for the payment core.

Declines and transport failures are not exceptions; adapters report them as
ChargeResult values. Only caller-input and configuration mistakes raise.
"""

from __future__ import annotations


class PaymentError(Exception):
    """Base class for payment core errors."""


class PaymentValidationError(PaymentError):
    """Caller input rejected before any provider was contacted."""


class InvalidAmount(PaymentValidationError, ValueError):
    pass


class UnsupportedCurrency(PaymentValidationError, ValueError):
    def __init__(self, currency: str, provider: str | None = None) -> None:
        self.currency = currency
        self.provider = provider
        where = f" by provider '{provider}'" if provider else ""
        super().__init__(f"Currency '{currency}' is not supported{where}")


class InvalidStrategy(PaymentValidationError, TypeError):
    pass


class PaymentConfigurationError(PaymentError):
    """Programming or configuration mistake; resubmitting will not help."""


class UnknownProvider(PaymentConfigurationError, LookupError):
    def __init__(self, provider_id: str, known: list[str] | None = None) -> None:
        self.provider_id = provider_id
        self.known = known or []
        available = ", ".join(self.known) or "none"
        super().__init__(f"Unknown payment provider '{provider_id}' (registered: {available})")


class NoStrategySelected(PaymentConfigurationError, RuntimeError):
    pass


__all__ = [
    "InvalidAmount",
    "InvalidStrategy",
    "NoStrategySelected",
    "PaymentConfigurationError",
    "PaymentError",
    "PaymentValidationError",
    "UnknownProvider",
    "UnsupportedCurrency",
]
