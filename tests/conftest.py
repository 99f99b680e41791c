"""Pytest bootstrap configuration.

Seed payment environment variables before test collection and module imports
that build settings, then expose shared fixtures.
"""
import os

os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("PAYOS__CLIENT_ID", "test-client")
os.environ.setdefault("PAYOS__API_KEY", "test-api-key")
os.environ.setdefault("PAYOS__CHECKSUM_KEY", "test-checksum-key")

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from core.settings import PayOSSettings, PaymentSettings
from domain.payment.entity import Order, OrderItem


CHECKSUM_KEY = "test-checksum-key"
FIXED_NOW = datetime(2026, 10, 19, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def payos_settings() -> PayOSSettings:
    return PayOSSettings(
        client_id="test-client",
        api_key="test-api-key",
        checksum_key=CHECKSUM_KEY,
        base_url="https://payos.test",
    )


@pytest.fixture
def settings(payos_settings) -> PaymentSettings:
    return PaymentSettings(payos=payos_settings)


@pytest.fixture
def widget_order() -> Order:
    return Order(
        id=7,
        order_number="ORD-0007",
        total_amount=Decimal("150000"),
        items=[OrderItem(name="Widget", quantity=2, unit_price=Decimal("75000"))],
    )


@pytest.fixture
def cod_order() -> Order:
    return Order(id=42, order_number="ORD-0042", total_amount=Decimal("50000"))
