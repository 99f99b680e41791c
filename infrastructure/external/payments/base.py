"""
Base payment client implementing shared concerns: http, timeouts, logging, mapping.

Concrete providers should subclass and implement provider-specific logic.
Remote calls are not retried here; a transport failure or timeout surfaces
as GatewayUnavailableException and the caller decides.
"""
from __future__ import annotations

from typing import Any, Mapping, Optional

import httpx

from core.logging_config import get_logger
from domain.payment.entity import PaymentStatus
from domain.payment.status import map_status_code
from domain.common.exceptions import GatewayUnavailableException
from shared.codes.payment_codes import PROVIDER_STATUS_TO_INTERNAL


logger = get_logger(__name__)


class BasePaymentClient:
    provider: str = "base"

    def __init__(
        self,
        *,
        base_url: str,
        timeouts: Optional[dict[str, float]] = None,
        headers: Optional[dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._timeouts_cfg = timeouts or {"connect": 1.0, "read": 10.0, "write": 10.0, "total": 30.0}
        self._headers = headers or {}
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def timeouts(self) -> httpx.Timeout:
        return httpx.Timeout(
            connect=self._timeouts_cfg["connect"],
            read=self._timeouts_cfg["read"],
            write=self._timeouts_cfg["write"],
            timeout=self._timeouts_cfg["total"],
        )

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeouts,
                headers=self._headers,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        """Close underlying HTTP client if created."""
        if self._client is not None:
            try:
                await self._client.aclose()
            finally:
                self._client = None

    async def _send(self, method: str, path: str, *, operation: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self.client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            self._log("payment_gateway_timeout", operation=operation, path=path)
            raise GatewayUnavailableException(
                f"{self.provider} request timed out",
                provider=self.provider,
                details={"operation": operation},
            ) from exc
        except httpx.HTTPError as exc:
            self._log("payment_gateway_transport_error", operation=operation, path=path, error=str(exc))
            raise GatewayUnavailableException(
                f"{self.provider} transport error: {exc}",
                provider=self.provider,
                details={"operation": operation},
            ) from exc

    # Helpers
    @property
    def status_table(self) -> Mapping[str, str]:
        return PROVIDER_STATUS_TO_INTERNAL.get(self.provider, {})

    def map_status(self, code: str | None) -> PaymentStatus:
        return map_status_code(code, self.status_table)

    def _log(self, event: str, **kwargs) -> None:
        logger.info(
            event,
            provider=self.provider,
            **kwargs,
        )
