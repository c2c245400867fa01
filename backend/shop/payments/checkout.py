"""Checkout-side use of the payment core.

Picks the provider for one checkout, dispatches request-scoped, and owns the
retry policy: only retryable FAILED results are retried, always with the same
idempotency key so the provider can collapse duplicates.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import uuid4

from ..logging_config import checkout_context, get_logger
from ..settings import settings
from .base import ChargeRequest, ChargeResult, ChargeStatus
from .dispatcher import PaymentDispatcher
from .registry import ProviderRegistry, normalize_provider_id

logger = get_logger(__name__)

CUSTOMER_MESSAGES = {
    ChargeStatus.SUCCEEDED: "Payment received. Thank you for your order!",
    ChargeStatus.DECLINED: (
        "Your payment was declined. Please use a different payment method "
        "or contact your bank."
    ),
    ChargeStatus.FAILED: (
        "We could not confirm your payment with the payment service. "
        "Please try again in a few minutes."
    ),
}


@dataclass(frozen=True)
class CheckoutOutcome:
    result: ChargeResult
    provider: str
    attempts: int
    idempotency_key: str

    @property
    def status(self) -> ChargeStatus:
        return self.result.status

    @property
    def customer_message(self) -> str:
        return CUSTOMER_MESSAGES[self.result.status]


class CheckoutFlow:
    def __init__(
        self,
        registry: ProviderRegistry,
        *,
        default_provider: str | None = None,
        max_attempts: int | None = None,
        timeout: float | None = None,
    ) -> None:
        self.registry = registry
        self.default_provider = default_provider
        self.max_attempts = max(1, max_attempts or settings.PAYMENT_MAX_ATTEMPTS)
        self.timeout = timeout

    def select_provider(self, provider: str | None = None) -> str:
        return normalize_provider_id(provider or self.default_provider or settings.PAYMENT_PROVIDER)

    async def pay(self, request: ChargeRequest, provider: str | None = None) -> CheckoutOutcome:
        provider_id = self.select_provider(provider)
        # fresh dispatcher per checkout; the adapter is resolved before any attempt
        dispatcher = PaymentDispatcher(self.registry.resolve(provider_id))
        if not request.idempotency_key:
            request = request.model_copy(update={"idempotency_key": uuid4().hex})

        with checkout_context(request.order_reference, provider_id):
            attempts = 0
            while True:
                attempts += 1
                result = await dispatcher.execute_payment(request, timeout=self.timeout)
                if not _should_retry(result) or attempts >= self.max_attempts:
                    break
                logger.warning(
                    "payment_retrying",
                    attempt=attempts,
                    max_attempts=self.max_attempts,
                    error_code=result.error_detail.code,
                )

            logger.info("checkout_payment_finished", status=result.status.value, attempts=attempts)
        return CheckoutOutcome(
            result=result,
            provider=provider_id,
            attempts=attempts,
            idempotency_key=request.idempotency_key,
        )


def _should_retry(result: ChargeResult) -> bool:
    return (
        result.status is ChargeStatus.FAILED
        and result.error_detail is not None
        and result.error_detail.retryable
    )


__all__ = ["CUSTOMER_MESSAGES", "CheckoutFlow", "CheckoutOutcome"]
