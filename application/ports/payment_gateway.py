"""
Payment ports (application/ports) exposing replaceable protocols.

Application depends on these Protocols; infrastructure implements the
gateway adapters and the composition root wires strategies together.
"""
from __future__ import annotations

from typing import Protocol, runtime_checkable

from application.dtos.payments import (
    GatewayPaymentInfo,
    GatewayPaymentLink,
    GatewayPaymentRequest,
    GatewayWebhookEvent,
    PaymentInfoResponse,
    PaymentLinkResponse,
    PaymentMethodInfo,
    PaymentWebhookResponse,
)
from domain.payment.entity import Order, PaymentMethod, PaymentStatus


@runtime_checkable
class PaymentGateway(Protocol):
    """Client adapter for one remote payment gateway.

    Amounts are integer minor units. Implementations own their status table
    and must surface timeouts as GatewayUnavailableException.
    """

    provider: str

    def generate_order_code(self) -> int: ...

    async def create_payment_link(self, req: GatewayPaymentRequest) -> GatewayPaymentLink: ...

    async def get_payment_info(self, order_code: int) -> GatewayPaymentInfo: ...

    async def cancel_payment(self, order_code: int, reason: str) -> None: ...

    def verify_signature(self, signature: str | None, raw_body: bytes) -> bool: ...

    def parse_webhook(self, raw_body: bytes) -> GatewayWebhookEvent: ...

    def map_status(self, code: str | None) -> PaymentStatus: ...

    async def aclose(self) -> None: ...


@runtime_checkable
class PaymentMethodStrategy(Protocol):
    """Uniform operation set implemented once per payment method."""

    method: PaymentMethod

    @property
    def info(self) -> PaymentMethodInfo: ...

    async def create_link(self, order: Order) -> PaymentLinkResponse: ...

    async def process_payment(self, order_code: int) -> PaymentInfoResponse: ...

    async def cancel(self, order_code: int, reason: str) -> None: ...

    def verify_webhook(self, signature: str | None, body: bytes) -> bool: ...

    def handle_webhook(self, raw_body: bytes) -> PaymentWebhookResponse: ...

    async def aclose(self) -> None:
        """Release whatever the method holds open (HTTP clients, pools)."""
        ...
