import asyncio
import os
import sys
from decimal import Decimal
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Never pick up real gateway credentials from the developer's environment
for _key in (
    "STRIPE_SECRET_KEY",
    "BRAINTREE_PUBLIC_KEY",
    "BRAINTREE_PRIVATE_KEY",
    "PAYPAL_CLIENT_ID",
    "PAYPAL_CLIENT_SECRET",
):
    os.environ.pop(_key, None)
os.environ["PAYMENT_PROVIDER"] = "mock"

from backend.shop.payments.base import ChargeRequest, ChargeResult, ErrorDetail  # noqa: E402
from backend.shop.payments.factory import get_registry  # noqa: E402
from backend.shop.settings import settings  # noqa: E402


class RecordingProvider:
    """Test double that records every request and answers with a fixed outcome."""

    def __init__(self, name: str, outcome: str = "succeed", delay: float = 0.0) -> None:
        self.name = name
        self.outcome = outcome
        self.delay = delay
        self.requests: list[ChargeRequest] = []
        self.timeouts: list[float | None] = []

    @property
    def call_count(self) -> int:
        return len(self.requests)

    async def charge(self, request: ChargeRequest, *, timeout: float | None = None) -> ChargeResult:
        self.requests.append(request)
        self.timeouts.append(timeout)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.outcome == "succeed":
            return ChargeResult.succeeded(self.name, f"{self.name}_txn_{len(self.requests)}")
        if self.outcome == "decline":
            return ChargeResult.declined(
                self.name, ErrorDetail(code="declined", message="insufficient funds")
            )
        if self.outcome == "timeout":
            return ChargeResult.failed(
                self.name, ErrorDetail(code="timeout", message="timed out", retryable=True)
            )
        return ChargeResult.failed(
            self.name, ErrorDetail(code="provider_error", message="bad request", retryable=False)
        )


@pytest.fixture
def recording_provider():
    return RecordingProvider


@pytest.fixture
def charge_request() -> ChargeRequest:
    return ChargeRequest(amount=Decimal("100"), currency="USD", order_reference="ORD-1001")


@pytest.fixture(autouse=True)
def isolate_settings(monkeypatch):
    monkeypatch.setattr(settings, "PAYMENT_PROVIDER", "mock")
    monkeypatch.setattr(settings, "PAYMENT_MAX_ATTEMPTS", 1)
    get_registry.cache_clear()
    yield
    get_registry.cache_clear()
