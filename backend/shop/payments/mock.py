from __future__ import annotations

import asyncio
from collections.abc import Collection
from typing import Any, Literal
from uuid import uuid4

from .base import ChargeRequest, ChargeResult, ErrorDetail, PaymentProvider
from .money import check_amount, check_currency_code, validate_charge

MockBehavior = Literal["succeed", "decline", "fail", "timeout"]
MOCK_BEHAVIORS: tuple[str, ...] = ("succeed", "decline", "fail", "timeout")


class MockPaymentProvider(PaymentProvider):
    """Local gateway that never leaves the process.

    The outcome is configurable at runtime and every accepted charge is kept
    in ``calls`` so tests can assert what was routed here.
    """

    def __init__(
        self,
        *,
        name: str = "mock",
        behavior: MockBehavior = "succeed",
        currencies: Collection[str] | None = None,
        latency: float = 0.0,
    ) -> None:
        self.name = name
        self.currencies = frozenset(code.upper() for code in currencies) if currencies else None
        self.latency = latency
        self.calls: list[ChargeRequest] = []
        self.configure(behavior)

    def configure(self, behavior: MockBehavior) -> None:
        if behavior not in MOCK_BEHAVIORS:
            raise ValueError(f"Unknown mock behavior '{behavior}'")
        self.behavior = behavior

    async def charge(
        self, request: ChargeRequest, *, timeout: float | None = None
    ) -> ChargeResult:
        if self.currencies is not None:
            validate_charge(request, self.currencies, provider=self.name)
        else:
            check_currency_code(request.currency, provider=self.name)
            check_amount(request.amount, request.currency)
        self.calls.append(request)
        if self.latency:
            try:
                await asyncio.wait_for(asyncio.sleep(self.latency), timeout=timeout)
            except asyncio.TimeoutError:
                return ChargeResult.failed(
                    self.name,
                    ErrorDetail(
                        code="timeout",
                        message=f"mock gateway exceeded {timeout}s",
                        retryable=True,
                    ),
                )

        payload: dict[str, Any] = {
            "amount": str(request.amount),
            "currency": request.currency,
            "order_reference": request.order_reference,
            "metadata": dict(request.metadata),
        }
        if self.behavior == "succeed":
            return ChargeResult.succeeded(self.name, f"mock_{uuid4().hex}", raw=payload)
        if self.behavior == "decline":
            return ChargeResult.declined(
                self.name,
                ErrorDetail(code="declined", message="Card declined", provider_code="card_declined"),
                transaction_id=f"mock_{uuid4().hex}",
                raw=payload,
            )
        if self.behavior == "timeout":
            return ChargeResult.failed(
                self.name,
                ErrorDetail(code="timeout", message="mock gateway timed out", retryable=True),
                raw=payload,
            )
        return ChargeResult.failed(
            self.name,
            ErrorDetail(code="provider_error", message="mock gateway error", retryable=True),
            raw=payload,
        )
