"""Shared HTTP plumbing for provider adapters.

Each adapter owns one ProviderTransport. A call is exactly one HTTP request;
transport problems come back as ProviderTransportError carrying the
ErrorDetail the adapter reports in its FAILED result.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any

import httpx

from ..logging_config import get_logger
from ..settings import settings
from .base import ErrorDetail

logger = get_logger(__name__)


class ProviderTransportError(Exception):
    def __init__(self, detail: ErrorDetail) -> None:
        super().__init__(detail.message)
        self.detail = detail


def provider_error(
    message: str, *, provider_code: str | None = None, status_code: int | None = None
) -> ErrorDetail:
    retryable = status_code is not None and (status_code >= 500 or status_code == 429)
    return ErrorDetail(
        code="provider_error",
        message=message,
        provider_code=provider_code,
        retryable=retryable,
    )


def malformed_response(message: str) -> ErrorDetail:
    return ErrorDetail(code="malformed_response", message=message, retryable=False)


def as_object(value: Any) -> dict | None:
    """Return ``value`` if it is a JSON object, else ``None``."""
    return value if isinstance(value, dict) else None


def as_text(value: Any) -> str | None:
    """Return ``value`` if it is a non-empty JSON string, else ``None``."""
    return value if isinstance(value, str) and value else None


class ProviderTransport:
    def __init__(
        self,
        provider: str,
        base_url: str,
        *,
        timeout: float | None = None,
        connect_timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.provider = provider
        self.timeout = timeout if timeout is not None else settings.PAYMENT_TIMEOUT_SECONDS
        connect = (
            connect_timeout
            if connect_timeout is not None
            else settings.PAYMENT_CONNECT_TIMEOUT_SECONDS
        )
        if client is None:
            client = httpx.AsyncClient(
                base_url=base_url.rstrip("/"),
                timeout=httpx.Timeout(self.timeout, connect=min(connect, self.timeout)),
            )
        self._client = client

    async def request(
        self,
        method: str,
        path: str,
        *,
        timeout: float | None = None,
        **kwargs: Any,
    ) -> tuple[httpx.Response, Any]:
        """Send one request and decode its JSON body.

        ``timeout`` is an overall deadline in seconds for this call. Caller
        cancellation is not intercepted.
        """
        deadline = timeout if timeout is not None else self.timeout
        started = time.perf_counter()
        try:
            response = await asyncio.wait_for(
                self._client.request(method, path, **kwargs), timeout=deadline
            )
        except (httpx.TimeoutException, asyncio.TimeoutError) as exc:
            self._log_transport_error("timeout", started, exc)
            raise ProviderTransportError(
                ErrorDetail(
                    code="timeout",
                    message=f"{self.provider} did not answer within {deadline}s",
                    retryable=True,
                )
            ) from exc
        except httpx.TransportError as exc:
            self._log_transport_error("connection_error", started, exc)
            raise ProviderTransportError(
                ErrorDetail(
                    code="connection_error",
                    message=f"Could not reach {self.provider}: {exc}",
                    retryable=True,
                )
            ) from exc
        except httpx.DecodingError as exc:
            self._log_transport_error("malformed_response", started, exc)
            raise ProviderTransportError(
                malformed_response(f"{self.provider} sent a body that could not be decoded")
            ) from exc
        except httpx.RequestError as exc:
            # redirect loops and other non-network request failures
            self._log_transport_error("provider_error", started, exc)
            raise ProviderTransportError(
                provider_error(f"{self.provider} request failed: {exc}")
            ) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            self._log_transport_error("malformed_response", started, exc)
            raise ProviderTransportError(
                malformed_response(
                    f"{self.provider} returned a non-JSON body (HTTP {response.status_code})"
                )
            ) from exc
        logger.debug(
            "payment_provider_response",
            provider=self.provider,
            status_code=response.status_code,
            latency_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return response, payload

    def _log_transport_error(self, code: str, started: float, exc: Exception) -> None:
        logger.warning(
            "payment_transport_error",
            provider=self.provider,
            code=code,
            error=str(exc) or exc.__class__.__name__,
            latency_ms=round((time.perf_counter() - started) * 1000, 1),
        )

    async def aclose(self) -> None:
        await self._client.aclose()


__all__ = ["ProviderTransport", "ProviderTransportError", "malformed_response", "provider_error"]
