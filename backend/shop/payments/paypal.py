from __future__ import annotations

from collections.abc import Collection
from typing import Any

import httpx

from ..logging_config import get_logger
from .base import ChargeRequest, ChargeResult, ErrorDetail, PaymentProvider
from .money import format_amount, validate_charge
from .transport import (
    ProviderTransport,
    ProviderTransportError,
    as_object,
    as_text,
    malformed_response,
    provider_error,
)

logger = get_logger(__name__)

# Issues PayPal reports on HTTP 422 when the payer's instrument is refused
DECLINE_ISSUES = frozenset({"INSTRUMENT_DECLINED", "TRANSACTION_REFUSED", "PAYER_CANNOT_PAY"})
CAPTURED_STATUSES = frozenset({"COMPLETED", "PENDING"})


class PayPalProvider(PaymentProvider):
    """Creates and captures a PayPal order against a vaulted payment source.

    With a ``vault_id`` payment source PayPal captures immediately, so the
    charge is a single ``POST /v2/checkout/orders``.
    """

    name = "paypal"

    def __init__(
        self,
        *,
        client_id: str,
        client_secret: str,
        currencies: Collection[str],
        api_base: str = "https://api-m.sandbox.paypal.com",
        timeout: float | None = None,
        connect_timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not client_id or not client_secret:
            raise ValueError("PayPalProvider requires a client id and secret")
        self._auth = httpx.BasicAuth(client_id, client_secret)
        self.currencies = frozenset(code.upper() for code in currencies)
        self.transport = ProviderTransport(
            self.name,
            api_base,
            timeout=timeout,
            connect_timeout=connect_timeout,
            client=client,
        )

    def _order(self, request: ChargeRequest) -> dict[str, Any]:
        unit: dict[str, Any] = {
            "reference_id": request.order_reference,
            "amount": {
                "currency_code": request.currency,
                "value": format_amount(request.amount, request.currency),
            },
        }
        if request.metadata:
            # custom_id is a single free-form string (127 chars max)
            unit["custom_id"] = ";".join(f"{k}={v}" for k, v in request.metadata.items())[:127]
        order: dict[str, Any] = {"intent": "CAPTURE", "purchase_units": [unit]}
        if request.payment_token:
            order["payment_source"] = {"paypal": {"vault_id": request.payment_token}}
        return order

    async def charge(
        self, request: ChargeRequest, *, timeout: float | None = None
    ) -> ChargeResult:
        validate_charge(request, self.currencies, provider=self.name)
        headers = {"Prefer": "return=representation"}
        if request.idempotency_key:
            headers["PayPal-Request-Id"] = request.idempotency_key

        try:
            response, payload = await self.transport.request(
                "POST",
                "/v2/checkout/orders",
                json=self._order(request),
                headers=headers,
                auth=self._auth,
                timeout=timeout,
            )
        except ProviderTransportError as exc:
            return ChargeResult.failed(self.name, exc.detail)

        if not isinstance(payload, dict):
            return ChargeResult.failed(self.name, malformed_response("PayPal body is not an object"))
        if response.status_code >= 400:
            return self._from_error(response.status_code, payload)
        return self._from_order(payload)

    def _from_order(self, order: dict[str, Any]) -> ChargeResult:
        try:
            capture = order["purchase_units"][0]["payments"]["captures"][0]
        except (KeyError, IndexError, TypeError):
            status = as_text(order.get("status"))
            return ChargeResult.failed(
                self.name,
                provider_error(f"Order {order.get('id')} was not captured (status {status})",
                               provider_code=status),
                raw=order,
            )
        if not isinstance(capture, dict):
            return ChargeResult.failed(
                self.name, malformed_response("Capture is not an object"), raw=order
            )
        capture_id = as_text(capture.get("id"))
        status = as_text(capture.get("status"))
        if not capture_id or not status:
            return ChargeResult.failed(
                self.name, malformed_response("Capture is missing id or status"), raw=order
            )
        if status in CAPTURED_STATUSES:
            logger.info("payment_charge_succeeded", provider=self.name, transaction_id=capture_id)
            return ChargeResult.succeeded(self.name, capture_id, raw=order)
        if status == "DECLINED":
            logger.info("payment_charge_declined", provider=self.name, decline_code=status)
            return ChargeResult.declined(
                self.name,
                ErrorDetail(code="declined", message="PayPal declined the capture",
                            provider_code=status),
                transaction_id=capture_id,
                raw=order,
            )
        logger.warning("payment_charge_failed", provider=self.name, capture_status=status)
        return ChargeResult.failed(
            self.name,
            provider_error(f"Capture ended in status '{status}'", provider_code=status),
            raw=order,
        )

    def _from_error(self, status_code: int, payload: dict[str, Any]) -> ChargeResult:
        details = payload.get("details")
        first = details[0] if isinstance(details, list) and details else None
        issue = as_text((as_object(first) or {}).get("issue"))
        message = as_text(payload.get("message")) or f"PayPal HTTP {status_code}"
        if status_code == 422 and issue in DECLINE_ISSUES:
            logger.info("payment_charge_declined", provider=self.name, decline_code=issue)
            return ChargeResult.declined(
                self.name,
                ErrorDetail(code="declined", message=message, provider_code=issue),
                raw=payload,
            )
        logger.warning(
            "payment_charge_failed", provider=self.name, status_code=status_code, issue=issue
        )
        return ChargeResult.failed(
            self.name,
            provider_error(
                message,
                provider_code=issue or as_text(payload.get("name")),
                status_code=status_code,
            ),
            raw=payload,
        )

    async def aclose(self) -> None:
        await self.transport.aclose()
