from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ChargeStatus(str, Enum):
    SUCCEEDED = "succeeded"
    DECLINED = "declined"
    FAILED = "failed"


class ChargeRequest(BaseModel):
    """One payment attempt, built by the checkout flow and never mutated."""

    model_config = ConfigDict(frozen=True)

    amount: Decimal
    currency: str
    order_reference: str
    metadata: Mapping[str, str] = Field(default_factory=dict, validate_default=True)
    idempotency_key: str | None = None
    # provider-side token for the payment method (PaymentMethod id, vault id, ...)
    payment_token: str | None = None

    @field_validator("currency")
    @classmethod
    def _normalize_currency(cls, value: str) -> str:
        return value.strip().upper()

    @field_validator("order_reference")
    @classmethod
    def _strip_reference(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("order_reference cannot be blank")
        return cleaned

    @field_validator("metadata")
    @classmethod
    def _freeze_metadata(cls, value: Mapping[str, str]) -> Mapping[str, str]:
        return MappingProxyType(dict(value))


class ErrorDetail(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    provider_code: str | None = None
    retryable: bool = False


class ChargeResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: ChargeStatus
    provider: str
    provider_transaction_id: str | None = None
    error_detail: ErrorDetail | None = None
    raw: dict[str, Any] | None = None

    @model_validator(mode="after")
    def _check_shape(self) -> ChargeResult:
        if self.status is ChargeStatus.SUCCEEDED:
            if not self.provider_transaction_id:
                raise ValueError("succeeded charges need a provider_transaction_id")
            if self.error_detail is not None:
                raise ValueError("succeeded charges carry no error_detail")
        elif self.error_detail is None:
            raise ValueError(f"{self.status.value} charges need an error_detail")
        if self.status is ChargeStatus.FAILED and self.provider_transaction_id:
            raise ValueError("failed charges carry no provider_transaction_id")
        return self

    @classmethod
    def succeeded(
        cls, provider: str, transaction_id: str, *, raw: dict[str, Any] | None = None
    ) -> ChargeResult:
        return cls(
            status=ChargeStatus.SUCCEEDED,
            provider=provider,
            provider_transaction_id=transaction_id,
            raw=raw,
        )

    @classmethod
    def declined(
        cls,
        provider: str,
        detail: ErrorDetail,
        *,
        transaction_id: str | None = None,
        raw: dict[str, Any] | None = None,
    ) -> ChargeResult:
        return cls(
            status=ChargeStatus.DECLINED,
            provider=provider,
            provider_transaction_id=transaction_id,
            error_detail=detail,
            raw=raw,
        )

    @classmethod
    def failed(
        cls, provider: str, detail: ErrorDetail, *, raw: dict[str, Any] | None = None
    ) -> ChargeResult:
        return cls(status=ChargeStatus.FAILED, provider=provider, error_detail=detail, raw=raw)


@runtime_checkable
class PaymentProvider(Protocol):
    name: str

    async def charge(
        self, request: ChargeRequest, *, timeout: float | None = None
    ) -> ChargeResult: ...


def is_payment_provider(candidate: object) -> bool:
    return candidate is not None and callable(getattr(candidate, "charge", None))


__all__ = [
    "ChargeRequest",
    "ChargeResult",
    "ChargeStatus",
    "ErrorDetail",
    "PaymentProvider",
    "is_payment_provider",
]
