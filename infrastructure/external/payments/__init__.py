"""
Factory for payment gateway clients and the composition root of the
payment service.
"""
from __future__ import annotations

from datetime import timedelta
from typing import Optional

import httpx

from application.ports.payment_gateway import PaymentGateway, PaymentMethodStrategy
from application.services.payment_service import PaymentGatewayService
from application.services.payment_strategies import CashOnDeliveryStrategy, OnlineGatewayStrategy
from application.utils.money import MoneyConverter
from application.utils.templates import PaymentLinkTemplates
from core.settings import PaymentSettings
from domain.payment.entity import PaymentMethod


def get_payment_gateway(
    provider: str,
    settings: PaymentSettings,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> PaymentGateway:
    name = provider.lower()
    if name in {"payos", "vietqr"}:
        from .payos_client import PayOSClient
        return PayOSClient(settings.payos, timeouts=settings.timeouts, transport=transport)
    raise ValueError(f"Unsupported payment provider: {name}")


def build_strategy(
    method: PaymentMethod,
    settings: PaymentSettings,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> PaymentMethodStrategy:
    if method is PaymentMethod.ONLINE_GATEWAY:
        links = settings.links
        return OnlineGatewayStrategy(
            get_payment_gateway("payos", settings, transport=transport),
            converter=MoneyConverter(
                exponent=settings.payos.amount_exponent,
                max_minor_units=settings.payos.max_minor_units,
            ),
            templates=PaymentLinkTemplates(
                base_url=links.base_url,
                return_path=links.return_path,
                cancel_path=links.cancel_path,
                description_template=links.description_template,
            ),
            link_ttl=timedelta(hours=settings.expiry.online_hours),
        )
    if method is PaymentMethod.CASH_ON_DELIVERY:
        return CashOnDeliveryStrategy(delivery_window=timedelta(days=settings.expiry.cod_days))
    raise ValueError(f"No strategy for payment method: {method}")


def build_payment_service(
    settings: Optional[PaymentSettings] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> PaymentGatewayService:
    """Wire the enabled payment methods into a PaymentGatewayService."""
    if settings is None:
        from core.settings import payment_settings as settings
    strategies = [
        build_strategy(PaymentMethod(code.lower()), settings, transport=transport)
        for code in settings.enabled_methods
    ]
    return PaymentGatewayService(strategies)
