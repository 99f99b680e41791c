"""
PayOS (VietQR) adapter speaking the merchant REST API over httpx.

Endpoints used:
- POST /v2/payment-requests                  create a payment link
- GET  /v2/payment-requests/{orderCode}      fetch payment state
- POST /v2/payment-requests/{orderCode}/cancel

Requests carry `x-client-id` / `x-api-key`; payment links and webhooks are
signed with HMAC-SHA256 using the merchant checksum key.
"""
from __future__ import annotations

import hashlib
import hmac
import json
import secrets
import time
from typing import Any, Optional, Union

import httpx
from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError

from application.dtos.payments import (
    GatewayPaymentInfo,
    GatewayPaymentLink,
    GatewayPaymentRequest,
    GatewayWebhookEvent,
)
from core.settings import PayOSSettings, PaymentTimeouts
from domain.common.exceptions import (
    GatewayRejectedException,
    GatewayUnavailableException,
    MalformedWebhookException,
    PaymentNotFoundException,
)
from infrastructure.external.payments.base import BasePaymentClient


SUCCESS_CODES = {"00", "0"}
# "Payment link does not exist"
NOT_FOUND_CODES = {"101"}


class _WebhookData(BaseModel):
    order_code: StrictInt = Field(alias="orderCode")
    amount: StrictInt = Field(ge=0)
    code: Union[str, int, None] = None
    transaction_id: str = Field(default="", alias="transactionId")
    payment_link_id: str = Field(default="", alias="paymentLinkId")
    reference: str = ""

    model_config = ConfigDict(populate_by_name=True, extra="allow")


class _WebhookEnvelope(BaseModel):
    code: Union[str, int, None] = None
    desc: str = ""
    success: Optional[bool] = None
    data: _WebhookData
    signature: str = ""


class _GatewayData(BaseModel):
    # Success payloads; numbers in string fields are tolerated, text in numeric ones is not
    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)


class _PaymentLinkData(_GatewayData):
    order_code: Optional[int] = Field(default=None, alias="orderCode")
    amount: Optional[int] = None
    checkout_url: Optional[str] = Field(default=None, alias="checkoutUrl")
    qr_code: Optional[str] = Field(default=None, alias="qrCode")
    account_number: Optional[str] = Field(default=None, alias="accountNumber")
    account_name: Optional[str] = Field(default=None, alias="accountName")
    bin: Optional[str] = None
    payment_link_id: Optional[str] = Field(default=None, alias="paymentLinkId")
    description: Optional[str] = None
    expired_at: Optional[int] = Field(default=None, alias="expiredAt")


class _Transaction(_GatewayData):
    reference: Optional[str] = None
    account_number: Optional[str] = Field(default=None, alias="accountNumber")
    description: Optional[str] = None


class _PaymentInfoData(_GatewayData):
    id: Optional[str] = None
    order_code: Optional[int] = Field(default=None, alias="orderCode")
    amount: Optional[int] = None
    code: Optional[str] = None
    status: Optional[str] = None
    transaction_id: Optional[str] = Field(default=None, alias="transactionId")
    reference: Optional[str] = None
    account_number: Optional[str] = Field(default=None, alias="accountNumber")
    description: Optional[str] = None
    transactions: Optional[list[_Transaction]] = None


def _code(value: Any) -> str:
    return "" if value is None else str(value).strip()


class PayOSClient(BasePaymentClient):
    provider = "payos"

    def __init__(
        self,
        config: PayOSSettings,
        *,
        timeouts: Optional[PaymentTimeouts] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {"Content-Type": "application/json"}
        if config.client_id:
            headers["x-client-id"] = config.client_id
        if config.api_key:
            headers["x-api-key"] = config.api_key
        super().__init__(
            base_url=config.base_url,
            timeouts=(timeouts or PaymentTimeouts()).model_dump(),
            headers=headers,
            transport=transport,
        )
        self._checksum_key = (config.checksum_key or "").encode("utf-8")

    def generate_order_code(self) -> int:
        # Millisecond clock plus a random suffix; stays below 2**53
        return int(time.time() * 1000) * 1000 + secrets.randbelow(1000)

    # ---- signatures -------------------------------------------------------

    def _hmac_hex(self, data: bytes) -> str:
        return hmac.new(self._checksum_key, data, hashlib.sha256).hexdigest()

    def sign_payment_request(self, req: GatewayPaymentRequest) -> str:
        data = (
            f"amount={req.amount}&cancelUrl={req.cancel_url}&description={req.description}"
            f"&orderCode={req.order_code}&returnUrl={req.return_url}"
        )
        return self._hmac_hex(data.encode("utf-8"))

    def verify_signature(self, signature: str | None, raw_body: bytes) -> bool:
        """Constant-time check of ``signature`` against HMAC-SHA256(raw_body).

        Never raises; malformed input yields False.
        """
        if not self._checksum_key or not isinstance(signature, str) or not signature:
            return False
        if not isinstance(raw_body, (bytes, bytearray)):
            return False
        try:
            expected = self._hmac_hex(bytes(raw_body))
            return hmac.compare_digest(expected.encode("ascii"), signature.strip().lower().encode("ascii"))
        except (UnicodeEncodeError, TypeError, ValueError):
            return False

    # ---- HTTP -------------------------------------------------------------

    def _unwrap(self, resp: httpx.Response, *, operation: str, order_code: int | None = None) -> dict[str, Any]:
        """Turn a raw response into the envelope ``data`` or raise the mapped error."""
        details = {"operation": operation, "http_status": resp.status_code}
        if order_code is not None:
            details["order_code"] = order_code
        if resp.status_code >= 500:
            raise GatewayUnavailableException(
                f"{self.provider} returned HTTP {resp.status_code}", provider=self.provider, details=details
            )
        try:
            body = resp.json()
        except (json.JSONDecodeError, ValueError) as exc:
            raise GatewayUnavailableException(
                f"{self.provider} returned an unreadable response", provider=self.provider, details=details
            ) from exc
        if not isinstance(body, dict):
            raise GatewayUnavailableException(
                f"{self.provider} returned an unexpected response", provider=self.provider, details=details
            )
        code = _code(body.get("code"))
        message = str(body.get("desc") or body.get("message") or "unknown error")
        if resp.status_code == 404 or (order_code is not None and code in NOT_FOUND_CODES):
            raise PaymentNotFoundException(
                f"{self.provider} has no payment {order_code}: {message}",
                provider=self.provider,
                provider_code=code or None,
                details=details,
            )
        if resp.status_code >= 400 or code not in SUCCESS_CODES:
            raise GatewayRejectedException(message, provider=self.provider, provider_code=code or None, details=details)
        data = body.get("data")
        return data if isinstance(data, dict) else {}

    def _validate(self, model: type[_GatewayData], data: dict[str, Any], *, operation: str, order_code: int):
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            err = exc.errors()[0]
            field = ".".join(str(part) for part in err.get("loc", ()))
            raise GatewayUnavailableException(
                f"{self.provider} returned malformed {operation} data",
                provider=self.provider,
                details={"operation": operation, "order_code": order_code, "reason": f"{field}: {err.get('msg')}"},
            ) from exc

    async def create_payment_link(self, req: GatewayPaymentRequest) -> GatewayPaymentLink:
        payload: dict[str, Any] = {
            "orderCode": req.order_code,
            "amount": req.amount,
            "description": req.description,
            "items": [item.model_dump() for item in req.items],
            "returnUrl": req.return_url,
            "cancelUrl": req.cancel_url,
            "signature": self.sign_payment_request(req),
        }
        if req.expired_at is not None:
            payload["expiredAt"] = req.expired_at

        resp = await self._send("POST", "/v2/payment-requests", operation="create_payment_link", json=payload)
        data = self._validate(
            _PaymentLinkData,
            self._unwrap(resp, operation="create_payment_link"),
            operation="create_payment_link",
            order_code=req.order_code,
        )
        if not data.checkout_url:
            raise GatewayRejectedException(
                "gateway accepted the request but returned no checkout URL",
                provider=self.provider,
                details={"operation": "create_payment_link", "order_code": req.order_code},
            )
        link = GatewayPaymentLink(
            order_code=data.order_code or req.order_code,
            amount=req.amount if data.amount is None else data.amount,
            checkout_url=data.checkout_url,
            qr_code=data.qr_code or "",
            account_number=data.account_number or "",
            account_name=data.account_name or "",
            bin=data.bin or "",
            payment_link_id=data.payment_link_id or "",
            description=data.description or req.description,
            expired_at=data.expired_at or None,
        )
        self._log("payos_payment_link_created", order_code=link.order_code, checkout_url=link.checkout_url)
        return link

    async def get_payment_info(self, order_code: int) -> GatewayPaymentInfo:
        resp = await self._send("GET", f"/v2/payment-requests/{order_code}", operation="get_payment_info")
        data = self._validate(
            _PaymentInfoData,
            self._unwrap(resp, operation="get_payment_info", order_code=order_code),
            operation="get_payment_info",
            order_code=order_code,
        )
        # Link-level fields first, then the latest settled transaction if any
        tx = data.transactions[-1] if data.transactions else _Transaction()
        return GatewayPaymentInfo(
            order_code=data.order_code or order_code,
            amount=data.amount or 0,
            code=_code(data.code or data.status),
            transaction_id=data.transaction_id or data.id or "",
            reference=data.reference or tx.reference or "",
            account_number=data.account_number or tx.account_number or "",
            description=data.description or tx.description or "",
        )

    async def cancel_payment(self, order_code: int, reason: str) -> None:
        resp = await self._send(
            "POST",
            f"/v2/payment-requests/{order_code}/cancel",
            operation="cancel_payment",
            json={"cancellationReason": reason},
        )
        self._unwrap(resp, operation="cancel_payment", order_code=order_code)
        self._log("payos_payment_cancelled", order_code=order_code, reason=reason)

    # ---- webhooks ---------------------------------------------------------

    def parse_webhook(self, raw_body: bytes) -> GatewayWebhookEvent:
        try:
            envelope = _WebhookEnvelope.model_validate_json(raw_body)
        except ValueError as exc:
            raise MalformedWebhookException(str(exc).splitlines()[0], raw_body=raw_body) from exc
        data = envelope.data
        return GatewayWebhookEvent(
            order_code=data.order_code,
            amount=data.amount,
            code=_code(data.code if data.code is not None else envelope.code),
            transaction_id=data.transaction_id or data.payment_link_id,
            reference=data.reference,
            data=data.model_dump(by_alias=True),
        )
