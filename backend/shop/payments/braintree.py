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

BRAINTREE_VERSION = "2019-01-01"

CHARGE_MUTATION = """
mutation ChargePaymentMethod($input: ChargePaymentMethodInput!) {
  chargePaymentMethod(input: $input) {
    clientMutationId
    transaction {
      id
      status
      processorResponse { legacyCode message }
    }
  }
}
""".strip()

SUCCESS_STATUSES = frozenset({"AUTHORIZED", "SUBMITTED_FOR_SETTLEMENT", "SETTLING", "SETTLED"})
DECLINE_STATUSES = frozenset({"PROCESSOR_DECLINED", "GATEWAY_REJECTED", "SETTLEMENT_DECLINED"})


class BraintreeProvider(PaymentProvider):
    """Charges a vaulted payment method through the Braintree GraphQL API.

    Braintree fixes the currency per merchant account, so ``currencies``
    should list the currency of the configured account.
    """

    name = "braintree"

    def __init__(
        self,
        *,
        public_key: str,
        private_key: str,
        currencies: Collection[str],
        merchant_account_id: str | None = None,
        api_base: str = "https://payments.sandbox.braintree-api.com",
        timeout: float | None = None,
        connect_timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not public_key or not private_key:
            raise ValueError("BraintreeProvider requires a public and a private key")
        self._auth = httpx.BasicAuth(public_key, private_key)
        self.currencies = frozenset(code.upper() for code in currencies)
        self.merchant_account_id = merchant_account_id
        self.transport = ProviderTransport(
            self.name,
            api_base,
            timeout=timeout,
            connect_timeout=connect_timeout,
            client=client,
        )

    def _variables(self, request: ChargeRequest) -> dict[str, Any]:
        transaction: dict[str, Any] = {
            "amount": format_amount(request.amount, request.currency),
            "orderId": request.order_reference,
        }
        if self.merchant_account_id:
            transaction["merchantAccountId"] = self.merchant_account_id
        if request.metadata:
            transaction["customFields"] = [
                {"name": key, "value": value} for key, value in request.metadata.items()
            ]
        payload: dict[str, Any] = {
            "paymentMethodId": request.payment_token,
            "transaction": transaction,
        }
        if request.idempotency_key:
            payload["clientMutationId"] = request.idempotency_key
        return {"input": payload}

    async def charge(
        self, request: ChargeRequest, *, timeout: float | None = None
    ) -> ChargeResult:
        validate_charge(request, self.currencies, provider=self.name)
        try:
            response, payload = await self.transport.request(
                "POST",
                "/graphql",
                json={"query": CHARGE_MUTATION, "variables": self._variables(request)},
                headers={"Braintree-Version": BRAINTREE_VERSION},
                auth=self._auth,
                timeout=timeout,
            )
        except ProviderTransportError as exc:
            return ChargeResult.failed(self.name, exc.detail)

        if not isinstance(payload, dict):
            return ChargeResult.failed(
                self.name, malformed_response("Braintree body is not an object")
            )
        errors = payload.get("errors") or []
        data = as_object(payload.get("data") or {})
        charged = None
        if data is not None:
            charged = as_object(data.get("chargePaymentMethod") or {})
        if not isinstance(errors, list) or charged is None:
            return ChargeResult.failed(
                self.name,
                malformed_response("Braintree response has an unexpected shape"),
                raw=payload,
            )
        transaction = charged.get("transaction")

        if transaction is None:
            if errors or response.status_code >= 400:
                return self._from_errors(response.status_code, errors, payload)
            return ChargeResult.failed(
                self.name, malformed_response("Braintree response has no transaction"), raw=payload
            )
        if not isinstance(transaction, dict):
            return ChargeResult.failed(
                self.name, malformed_response("Transaction is not an object"), raw=payload
            )
        return self._from_transaction(transaction, payload)

    def _from_transaction(self, transaction: dict[str, Any], raw: dict[str, Any]) -> ChargeResult:
        txn_id = as_text(transaction.get("id"))
        status = as_text(transaction.get("status"))
        if not txn_id or not status:
            return ChargeResult.failed(
                self.name, malformed_response("Transaction is missing id or status"), raw=raw
            )
        if status in SUCCESS_STATUSES:
            logger.info("payment_charge_succeeded", provider=self.name, transaction_id=txn_id)
            return ChargeResult.succeeded(self.name, txn_id, raw=raw)
        if status in DECLINE_STATUSES:
            processor = as_object(transaction.get("processorResponse")) or {}
            code = as_text(processor.get("legacyCode")) or status
            logger.info("payment_charge_declined", provider=self.name, decline_code=code)
            return ChargeResult.declined(
                self.name,
                ErrorDetail(
                    code="declined",
                    message=as_text(processor.get("message")) or "The payment method was declined",
                    provider_code=code,
                ),
                transaction_id=txn_id,
                raw=raw,
            )
        logger.warning("payment_charge_failed", provider=self.name, transaction_status=status)
        return ChargeResult.failed(
            self.name,
            provider_error(f"Transaction ended in status '{status}'", provider_code=status),
            raw=raw,
        )

    def _from_errors(self, status_code: int, errors: list[Any], raw: dict[str, Any]) -> ChargeResult:
        first = (as_object(errors[0]) if errors else None) or {}
        extensions = as_object(first.get("extensions")) or {}
        message = as_text(first.get("message")) or f"Braintree HTTP {status_code}"
        error_class = as_text(extensions.get("errorClass"))
        logger.warning(
            "payment_charge_failed",
            provider=self.name,
            status_code=status_code,
            error_class=error_class,
        )
        return ChargeResult.failed(
            self.name,
            provider_error(
                message,
                provider_code=as_text(extensions.get("legacyCode")) or error_class,
                status_code=status_code if status_code >= 400 else None,
            ),
            raw=raw,
        )

    async def aclose(self) -> None:
        await self.transport.aclose()
