"""Currency helpers shared by the provider adapters."""

from __future__ import annotations

from collections.abc import Collection
from decimal import Decimal, InvalidOperation

from .base import ChargeRequest
from .errors import InvalidAmount, UnsupportedCurrency

ZERO_DECIMAL_CURRENCIES = frozenset(
    {"BIF", "CLP", "DJF", "GNF", "ISK", "JPY", "KMF", "KRW", "PYG", "RWF",
     "UGX", "VND", "VUV", "XAF", "XOF", "XPF"}
)
THREE_DECIMAL_CURRENCIES = frozenset({"BHD", "IQD", "JOD", "KWD", "LYD", "OMR", "TND"})


def currency_exponent(currency: str) -> int:
    code = currency.upper()
    if code in ZERO_DECIMAL_CURRENCIES:
        return 0
    if code in THREE_DECIMAL_CURRENCIES:
        return 3
    return 2


def check_amount(amount: Decimal, currency: str) -> Decimal:
    try:
        if not amount.is_finite() or amount <= 0:
            raise InvalidAmount(f"Charge amount must be positive, got {amount}")
    except InvalidOperation as exc:
        raise InvalidAmount(f"Charge amount is not a number: {amount}") from exc
    exponent = currency_exponent(currency)
    if -amount.normalize().as_tuple().exponent > exponent:
        raise InvalidAmount(
            f"{currency} amounts allow at most {exponent} decimal places, got {amount}"
        )
    return amount


def to_minor_units(amount: Decimal, currency: str) -> int:
    """Convert a major-unit amount to the integer minor units most gateways expect."""
    checked = check_amount(amount, currency)
    return int(checked.scaleb(currency_exponent(currency)))


def format_amount(amount: Decimal, currency: str) -> str:
    """Fixed-point string with the currency's number of decimals ("10.00", "500")."""
    checked = check_amount(amount, currency)
    exponent = currency_exponent(currency)
    return f"{checked:.{exponent}f}"


def check_currency_code(currency: str, *, provider: str | None = None) -> str:
    """Reject anything that is not a three-letter ISO 4217 style code."""
    if len(currency) != 3 or not (currency.isascii() and currency.isalpha()):
        raise UnsupportedCurrency(currency, provider)
    return currency


def validate_charge(
    request: ChargeRequest, supported_currencies: Collection[str], *, provider: str
) -> None:
    """Pre-flight checks every adapter runs before touching the network."""
    if request.currency not in supported_currencies:
        raise UnsupportedCurrency(request.currency, provider)
    check_amount(request.amount, request.currency)


__all__ = [
    "check_amount",
    "check_currency_code",
    "currency_exponent",
    "format_amount",
    "to_minor_units",
    "validate_charge",
]
