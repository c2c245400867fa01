from __future__ import annotations

import inspect
from threading import Lock

from ..logging_config import get_logger
from .base import PaymentProvider, is_payment_provider
from .errors import InvalidStrategy, UnknownProvider

logger = get_logger(__name__)


def normalize_provider_id(provider_id: str) -> str:
    if not isinstance(provider_id, str) or not provider_id.strip():
        raise InvalidStrategy("Provider id must be a non-blank string")
    return provider_id.strip().lower()


class ProviderRegistry:
    """
    Lookup table from provider id to adapter instance.

    Built once at startup and read for the lifetime of the process.
    Registering an id twice replaces the earlier adapter.
    """

    def __init__(self) -> None:
        self._providers: dict[str, PaymentProvider] = {}
        self._lock = Lock()

    def register(self, provider_id: str, adapter: PaymentProvider) -> None:
        key = normalize_provider_id(provider_id)
        if not is_payment_provider(adapter):
            raise InvalidStrategy(f"Adapter for '{key}' does not implement charge()")
        with self._lock:
            replaced = key in self._providers
            # copy-on-write so readers never see a half-updated dict
            providers = dict(self._providers)
            providers[key] = adapter
            self._providers = providers
        logger.info(
            "payment_provider_registered",
            provider=key,
            adapter=type(adapter).__name__,
            replaced=replaced,
        )

    def resolve(self, provider_id: str) -> PaymentProvider:
        if not isinstance(provider_id, str) or not provider_id.strip():
            raise UnknownProvider(repr(provider_id), self.providers())
        key = normalize_provider_id(provider_id)
        adapter = self._providers.get(key)
        if adapter is None:
            raise UnknownProvider(key, self.providers())
        return adapter

    def providers(self) -> list[str]:
        return sorted(self._providers)

    def __contains__(self, provider_id: object) -> bool:
        if not isinstance(provider_id, str) or not provider_id.strip():
            return False
        return provider_id.strip().lower() in self._providers

    def __len__(self) -> int:
        return len(self._providers)

    async def aclose(self) -> None:
        """Release HTTP clients held by adapters that own one."""
        for adapter in self._providers.values():
            closer = getattr(adapter, "aclose", None)
            if closer is None:
                continue
            result = closer()
            if inspect.isawaitable(result):
                await result


__all__ = ["ProviderRegistry", "normalize_provider_id"]
