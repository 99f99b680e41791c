"""
Application service: the single entry point for payment use-cases.

This class only routes. It selects the strategy registered for the requested
payment method and forwards the call; strategies are built and injected by the
composition root (infrastructure), keeping dependencies one-way. Adding a
payment method means registering one more strategy.
"""
from __future__ import annotations

from typing import Iterable, Union

from application.dtos.payments import (
    PaymentInfoResponse,
    PaymentLinkResponse,
    PaymentMethodInfo,
    PaymentWebhookResponse,
)
from application.ports.payment_gateway import PaymentMethodStrategy
from core.logging_config import get_logger
from domain.common.exceptions import UnsupportedPaymentMethodException
from domain.payment.entity import Order, PaymentMethod


logger = get_logger(__name__)

MethodLike = Union[PaymentMethod, str]


class PaymentGatewayService:
    def __init__(self, strategies: Iterable[PaymentMethodStrategy] = ()) -> None:
        self._strategies: dict[PaymentMethod, PaymentMethodStrategy] = {}
        for strategy in strategies:
            self.register(strategy)

    def register(self, strategy: PaymentMethodStrategy) -> None:
        self._strategies[PaymentMethod(strategy.method)] = strategy

    def supported_methods(self) -> list[PaymentMethod]:
        return list(self._strategies)

    def _select(self, method: MethodLike, operation: str) -> PaymentMethodStrategy:
        try:
            key = PaymentMethod(method)
        except ValueError:
            raise UnsupportedPaymentMethodException(method, operation=operation) from None
        strategy = self._strategies.get(key)
        if strategy is None:
            raise UnsupportedPaymentMethodException(method, operation=operation)
        return strategy

    async def create_payment_link(self, order: Order, method: MethodLike) -> PaymentLinkResponse:
        strategy = self._select(method, "create_payment_link")
        logger.info("payment_link_request", order_id=order.id, order_number=order.order_number, payment_method=strategy.method.value)
        return await strategy.create_link(order)

    async def process_payment(self, order_code: int, method: MethodLike) -> PaymentInfoResponse:
        strategy = self._select(method, "process_payment")
        logger.info("payment_query_request", order_code=order_code, payment_method=strategy.method.value)
        info = await strategy.process_payment(order_code)
        logger.info("payment_query_response", order_code=order_code, payment_method=info.payment_method.value, status=info.status.value)
        return info

    async def cancel_payment(self, order_code: int, method: MethodLike, reason: str) -> None:
        strategy = self._select(method, "cancel_payment")
        logger.info("payment_cancel_request", order_code=order_code, payment_method=strategy.method.value, reason=reason)
        await strategy.cancel(order_code, reason)

    def verify_webhook(self, method: MethodLike, signature: str | None, raw_body: bytes) -> bool:
        strategy = self._select(method, "verify_webhook")
        ok = strategy.verify_webhook(signature, raw_body)
        if not ok:
            logger.warning("payment_webhook_signature_invalid", payment_method=strategy.method.value)
        return ok

    def handle_webhook(self, method: MethodLike, raw_body: bytes) -> PaymentWebhookResponse:
        strategy = self._select(method, "handle_webhook")
        return strategy.handle_webhook(raw_body)

    def list_payment_methods(self) -> list[PaymentMethodInfo]:
        return [strategy.info for strategy in self._strategies.values()]

    async def aclose(self) -> None:
        for strategy in self._strategies.values():
            await strategy.aclose()
