from __future__ import annotations

from collections.abc import Collection
from typing import Any

import httpx

from ..logging_config import get_logger
from .base import ChargeRequest, ChargeResult, ErrorDetail, PaymentProvider
from .money import to_minor_units, validate_charge
from .transport import (
    ProviderTransport,
    ProviderTransportError,
    as_object,
    as_text,
    malformed_response,
    provider_error,
)

logger = get_logger(__name__)


class StripeProvider(PaymentProvider):
    """Confirms a PaymentIntent in a single call to the Stripe REST API."""

    name = "stripe"

    def __init__(
        self,
        *,
        secret_key: str,
        currencies: Collection[str],
        api_base: str = "https://api.stripe.com",
        timeout: float | None = None,
        connect_timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not secret_key:
            raise ValueError("StripeProvider requires a secret key")
        self._secret_key = secret_key
        self.currencies = frozenset(code.upper() for code in currencies)
        self.transport = ProviderTransport(
            self.name,
            api_base,
            timeout=timeout,
            connect_timeout=connect_timeout,
            client=client,
        )

    def _form(self, request: ChargeRequest) -> dict[str, str]:
        form = {
            "amount": str(to_minor_units(request.amount, request.currency)),
            "currency": request.currency.lower(),
            "confirm": "true",
            "description": f"Order {request.order_reference}",
            "metadata[order_reference]": request.order_reference,
        }
        if request.payment_token:
            form["payment_method"] = request.payment_token
        for key, value in request.metadata.items():
            form[f"metadata[{key}]"] = value
        return form

    async def charge(
        self, request: ChargeRequest, *, timeout: float | None = None
    ) -> ChargeResult:
        validate_charge(request, self.currencies, provider=self.name)
        headers = {"Authorization": f"Bearer {self._secret_key}"}
        if request.idempotency_key:
            headers["Idempotency-Key"] = request.idempotency_key

        try:
            response, payload = await self.transport.request(
                "POST",
                "/v1/payment_intents",
                data=self._form(request),
                headers=headers,
                timeout=timeout,
            )
        except ProviderTransportError as exc:
            return ChargeResult.failed(self.name, exc.detail)

        if not isinstance(payload, dict):
            return ChargeResult.failed(self.name, malformed_response("Stripe body is not an object"))
        if response.status_code >= 400:
            return self._from_error(response.status_code, payload)
        return self._from_intent(payload)

    def _from_intent(self, intent: dict[str, Any]) -> ChargeResult:
        intent_id = as_text(intent.get("id"))
        status = as_text(intent.get("status"))
        if not intent_id or not status:
            return ChargeResult.failed(
                self.name, malformed_response("PaymentIntent is missing id or status"), raw=intent
            )
        if status == "succeeded":
            logger.info("payment_charge_succeeded", provider=self.name, transaction_id=intent_id)
            return ChargeResult.succeeded(self.name, intent_id, raw=intent)
        if status == "requires_payment_method":
            # a confirmed intent drops back here when the card was refused
            last_error = intent.get("last_payment_error") or {}
            if not isinstance(last_error, dict):
                return ChargeResult.failed(
                    self.name,
                    malformed_response("last_payment_error is not an object"),
                    raw=intent,
                )
            return self._declined(last_error, intent_id, intent)
        logger.warning("payment_charge_failed", provider=self.name, intent_status=status)
        return ChargeResult.failed(
            self.name,
            provider_error(f"PaymentIntent ended in status '{status}'", provider_code=status),
            raw=intent,
        )

    def _from_error(self, status_code: int, payload: dict[str, Any]) -> ChargeResult:
        error = payload.get("error")
        if not isinstance(error, dict):
            return ChargeResult.failed(
                self.name,
                malformed_response(f"Stripe HTTP {status_code} without an error object"),
                raw=payload,
            )
        if error.get("type") == "card_error":
            # payment_intent is expandable: either the object or its id
            intent = error.get("payment_intent")
            intent_id = as_text((as_object(intent) or {}).get("id")) or as_text(intent)
            return self._declined(error, intent_id, payload)
        error_type = as_text(error.get("type"))
        logger.warning(
            "payment_charge_failed",
            provider=self.name,
            status_code=status_code,
            error_type=error_type,
        )
        return ChargeResult.failed(
            self.name,
            provider_error(
                as_text(error.get("message")) or f"Stripe HTTP {status_code}",
                provider_code=as_text(error.get("code")) or error_type,
                status_code=status_code,
            ),
            raw=payload,
        )

    def _declined(
        self, error: dict[str, Any], intent_id: str | None, raw: dict[str, Any]
    ) -> ChargeResult:
        code = as_text(error.get("decline_code")) or as_text(error.get("code")) or "card_declined"
        logger.info("payment_charge_declined", provider=self.name, decline_code=code)
        return ChargeResult.declined(
            self.name,
            ErrorDetail(
                code="declined",
                message=as_text(error.get("message")) or "The card was declined",
                provider_code=code,
            ),
            transaction_id=intent_id,
            raw=raw,
        )

    async def aclose(self) -> None:
        await self.transport.aclose()
