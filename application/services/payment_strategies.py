"""
Payment method strategies: one implementation of the uniform operation set
per payment method.

Strategies depend on the application ports only. The online strategy talks to
a PaymentGateway adapter; cash on delivery has no remote backend and
synthesizes its own state.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Optional

from application.dtos.payments import (
    GatewayItem,
    GatewayPaymentRequest,
    PaymentInfoResponse,
    PaymentLinkResponse,
    PaymentMethodInfo,
    PaymentWebhookResponse,
)
from application.ports.payment_gateway import PaymentGateway
from application.utils.money import MoneyConverter
from application.utils.templates import PaymentLinkTemplates
from core.logging_config import get_logger
from domain.common.exceptions import (
    InvalidAmountException,
    MalformedWebhookException,
    PaymentGatewayError,
)
from domain.payment.entity import Order, PaymentMethod, PaymentStatus


logger = get_logger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OnlineGatewayStrategy:
    """Online QR / bank-transfer payments confirmed asynchronously by webhook."""

    method = PaymentMethod.ONLINE_GATEWAY

    def __init__(
        self,
        gateway: PaymentGateway,
        *,
        converter: MoneyConverter,
        templates: PaymentLinkTemplates,
        link_ttl: timedelta = timedelta(hours=24),
        clock: Clock = utcnow,
        info: Optional[PaymentMethodInfo] = None,
    ) -> None:
        self.gateway = gateway
        self.converter = converter
        self.templates = templates
        self.link_ttl = link_ttl
        self._clock = clock
        self._info = info or PaymentMethodInfo(
            code=self.method.value,
            name="VietQR",
            display_name="VietQR (PayOS)",
            description="Thanh toan qua ma QR VietQR",
            is_online=True,
            fee_type="percentage",
            fee_value=Decimal("0.5"),
            min_amount=Decimal("1000"),
            max_amount=Decimal("50000000"),
        )

    @property
    def info(self) -> PaymentMethodInfo:
        return self._info

    def _context(self, **ids) -> dict:
        return {"payment_method": self.method, "provider": self.gateway.provider, **ids}

    def build_request(self, order: Order, order_code: int, expires_at: datetime) -> GatewayPaymentRequest:
        params = {"order_id": order.id, "order_number": order.order_number, "order_code": order_code}
        return GatewayPaymentRequest(
            order_code=order_code,
            amount=self.converter.to_minor_units(order.total_amount),
            description=self.templates.description(**params),
            items=[
                GatewayItem(
                    name=item.name,
                    quantity=item.quantity,
                    price=self.converter.to_minor_units(item.unit_price),
                )
                for item in order.items
            ],
            return_url=self.templates.return_url(**params),
            cancel_url=self.templates.cancel_url(**params),
            expired_at=int(expires_at.timestamp()),
        )

    async def create_link(self, order: Order) -> PaymentLinkResponse:
        expires_at = self._clock() + self.link_ttl
        order_code = self.gateway.generate_order_code()
        context = dict(
            operation="create_payment_link", payment_method=self.method, order_id=order.id, order_code=order_code
        )
        try:
            req = self.build_request(order, order_code, expires_at)
        except InvalidAmountException as exc:
            raise exc.with_context(**context) from exc
        try:
            link = await self.gateway.create_payment_link(req)
        except PaymentGatewayError as exc:
            raise exc.with_context("failed to create payment link", **context) from exc
        try:
            amount = self.converter.to_decimal(link.amount)
        except InvalidAmountException as exc:
            raise exc.with_context(**context) from exc

        # The gateway's own expiry wins when it reports one
        if link.expired_at:
            expires_at = datetime.fromtimestamp(link.expired_at, tz=timezone.utc)

        logger.info(
            "payment_link_created",
            **self._context(order_id=order.id, order_code=link.order_code, expires_at=expires_at.isoformat()),
        )
        return PaymentLinkResponse(
            payment_url=link.checkout_url,
            qr_code=link.qr_code,
            order_code=link.order_code,
            amount=amount,
            account_number=link.account_number,
            account_name=link.account_name,
            expires_at=expires_at,
            payment_method=self.method,
        )

    async def process_payment(self, order_code: int) -> PaymentInfoResponse:
        try:
            info = await self.gateway.get_payment_info(order_code)
        except PaymentGatewayError as exc:
            raise exc.with_context(
                "failed to get payment info",
                operation="process_payment",
                payment_method=self.method,
                order_code=order_code,
            ) from exc
        try:
            amount = self.converter.to_decimal(info.amount)
        except InvalidAmountException as exc:
            raise exc.with_context(
                operation="process_payment", payment_method=self.method, order_code=order_code
            ) from exc
        return PaymentInfoResponse(
            order_code=info.order_code,
            amount=amount,
            status=self.gateway.map_status(info.code),
            transaction_id=info.transaction_id,
            reference=info.reference,
            account_number=info.account_number,
            description=info.description,
            payment_method=self.method,
        )

    async def cancel(self, order_code: int, reason: str) -> None:
        try:
            await self.gateway.cancel_payment(order_code, reason)
        except PaymentGatewayError as exc:
            raise exc.with_context(
                "failed to cancel payment",
                operation="cancel_payment",
                payment_method=self.method,
                order_code=order_code,
            ) from exc

    def verify_webhook(self, signature: str | None, body: bytes) -> bool:
        return self.gateway.verify_signature(signature, body)

    def handle_webhook(self, raw_body: bytes) -> PaymentWebhookResponse:
        try:
            event = self.gateway.parse_webhook(raw_body)
            amount = self.converter.to_decimal(event.amount)
        except MalformedWebhookException as exc:
            raise MalformedWebhookException(
                exc.details["reason"], raw_body=raw_body, payment_method=self.method.value
            ) from exc
        except InvalidAmountException as exc:
            raise MalformedWebhookException(exc.message, raw_body=raw_body, payment_method=self.method.value) from exc

        status = self.gateway.map_status(event.code)
        logger.info(
            "payment_webhook_handled",
            **self._context(order_code=event.order_code, status=status.value, code=event.code),
        )
        return PaymentWebhookResponse(
            order_code=event.order_code,
            amount=amount,
            status=status,
            transaction_id=event.transaction_id,
            reference=event.reference,
            payment_method=self.method,
            raw_data=raw_body,
        )

    async def aclose(self) -> None:
        await self.gateway.aclose()


class CashOnDeliveryStrategy:
    """Cash collected at delivery; nothing here talks to a remote system."""

    method = PaymentMethod.CASH_ON_DELIVERY

    def __init__(
        self,
        *,
        delivery_window: timedelta = timedelta(days=7),
        clock: Clock = utcnow,
        info: Optional[PaymentMethodInfo] = None,
    ) -> None:
        self.delivery_window = delivery_window
        self._clock = clock
        self._info = info or PaymentMethodInfo(
            code=self.method.value,
            name="Cash on Delivery",
            display_name="Thanh toan khi nhan hang",
            description="Thanh toan bang tien mat khi nhan hang",
            is_online=False,
            min_amount=Decimal("1000"),
            max_amount=Decimal("50000000"),
        )

    @property
    def info(self) -> PaymentMethodInfo:
        return self._info

    async def create_link(self, order: Order) -> PaymentLinkResponse:
        return PaymentLinkResponse(
            order_code=order.id,
            amount=order.total_amount,
            expires_at=self._clock() + self.delivery_window,
            payment_method=self.method,
        )

    async def process_payment(self, order_code: int) -> PaymentInfoResponse:
        # Collection is confirmed out-of-band at delivery
        return PaymentInfoResponse(
            order_code=order_code,
            amount=Decimal("0"),
            status=PaymentStatus.PENDING,
            transaction_id=f"COD-{order_code}",
            reference=f"COD-REF-{order_code}",
            description="Cash on Delivery - Payment pending",
            payment_method=self.method,
        )

    async def cancel(self, order_code: int, reason: str) -> None:
        logger.info("cod_payment_cancelled", order_code=order_code, reason=reason, payment_method=self.method.value)

    def verify_webhook(self, signature: str | None, body: bytes) -> bool:
        # Never receives externally signed webhooks
        return True

    def handle_webhook(self, raw_body: bytes) -> PaymentWebhookResponse:
        # Zero values here are placeholders, not a zero-amount payment
        logger.warning("cod_webhook_received", body_size=len(raw_body or b""))
        return PaymentWebhookResponse(
            order_code=0,
            amount=Decimal("0"),
            status=PaymentStatus.PENDING,
            payment_method=self.method,
            raw_data=raw_body or b"",
        )

    async def aclose(self) -> None:
        # Holds no connections
        return None
