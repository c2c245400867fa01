"""Routes charge requests to a payment provider adapter.

Two ways to pick the adapter:

- ``set_strategy()`` stores a current adapter on the dispatcher. Only safe
  when one checkout uses the dispatcher at a time (or it is built per
  checkout).
- ``execute_payment(request, provider=...)`` names the adapter for that call
  alone; the stored strategy is neither read nor changed. Concurrent
  checkouts sharing a dispatcher must use this form.
"""

from __future__ import annotations

from ..logging_config import get_logger
from .base import ChargeRequest, ChargeResult, PaymentProvider, is_payment_provider
from .errors import InvalidStrategy, NoStrategySelected
from .registry import ProviderRegistry

logger = get_logger(__name__)


class PaymentDispatcher:
    def __init__(
        self,
        strategy: PaymentProvider | None = None,
        *,
        registry: ProviderRegistry | None = None,
    ) -> None:
        self._strategy: PaymentProvider | None = None
        self.registry = registry
        if strategy is not None:
            self.set_strategy(strategy)

    @property
    def strategy(self) -> PaymentProvider | None:
        return self._strategy

    @property
    def is_configured(self) -> bool:
        return self._strategy is not None

    def set_strategy(self, adapter: PaymentProvider) -> None:
        if adapter is None:
            raise InvalidStrategy("Payment strategy cannot be None")
        if not is_payment_provider(adapter):
            raise InvalidStrategy(f"{type(adapter).__name__} does not implement charge()")
        previous = self._strategy
        self._strategy = adapter
        logger.debug(
            "payment_strategy_selected",
            provider=_provider_name(adapter),
            previous=_provider_name(previous) if previous is not None else None,
        )

    def _select(self, provider: PaymentProvider | str | None) -> PaymentProvider:
        if provider is None:
            if self._strategy is None:
                raise NoStrategySelected(
                    "No payment provider selected; call set_strategy() or pass provider="
                )
            return self._strategy
        if isinstance(provider, str):
            if self.registry is None:
                raise NoStrategySelected(
                    f"Cannot resolve provider '{provider}' without a registry"
                )
            return self.registry.resolve(provider)
        if not is_payment_provider(provider):
            raise InvalidStrategy(f"{type(provider).__name__} does not implement charge()")
        return provider

    async def execute_payment(
        self,
        request: ChargeRequest,
        *,
        provider: PaymentProvider | str | None = None,
        timeout: float | None = None,
    ) -> ChargeResult:
        adapter = self._select(provider)
        result = await adapter.charge(request, timeout=timeout)
        logger.info(
            "payment_dispatched",
            provider=_provider_name(adapter),
            order_reference=request.order_reference,
            status=result.status.value,
            request_scoped=provider is not None,
        )
        return result


def _provider_name(adapter: PaymentProvider) -> str:
    return getattr(adapter, "name", None) or type(adapter).__name__


__all__ = ["PaymentDispatcher"]
