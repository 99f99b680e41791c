"""
Payment DTOs (Pydantic v2) used at application boundaries.

Two families live here:
- caller-facing responses (decimal amounts, canonical status, payment method);
- gateway-facing shapes exchanged with a client adapter (integer minor units).
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional
from pydantic import BaseModel, Field, ConfigDict, field_serializer
from pydantic.types import condecimal, conint

from domain.payment.entity import Order, OrderItem, PaymentMethod, PaymentStatus


# ---- caller side -----------------------------------------------------------

class OrderItemDTO(BaseModel):
    name: str
    quantity: conint(gt=0)  # type: ignore[valid-type]
    unit_price: condecimal(ge=0)  # type: ignore[valid-type]


class OrderDTO(BaseModel):
    id: int
    order_number: str
    total_amount: condecimal(ge=0)  # type: ignore[valid-type]
    items: list[OrderItemDTO] = Field(default_factory=list)

    def to_entity(self) -> Order:
        return Order(
            id=self.id,
            order_number=self.order_number,
            total_amount=self.total_amount,
            items=tuple(
                OrderItem(name=i.name, quantity=i.quantity, unit_price=i.unit_price) for i in self.items
            ),
        )


class CancelPaymentRequest(BaseModel):
    reason: str = ""


class PaymentLinkResponse(BaseModel):
    """Result of initiating a payment.

    Fields that do not apply to a method (QR code for cash on delivery, ...)
    are empty strings, never errors.
    """
    payment_url: str = ""
    qr_code: str = ""
    order_code: int
    amount: Decimal
    account_number: str = ""
    account_name: str = ""
    expires_at: datetime
    payment_method: PaymentMethod


class PaymentInfoResponse(BaseModel):
    order_code: int
    amount: Decimal
    status: PaymentStatus
    transaction_id: str = ""
    reference: str = ""
    account_number: str = ""
    description: str = ""
    payment_method: PaymentMethod


class PaymentWebhookResponse(BaseModel):
    order_code: int
    amount: Decimal
    status: PaymentStatus
    transaction_id: str = ""
    reference: str = ""
    payment_method: PaymentMethod
    # original payload for audit/replay
    raw_data: bytes = b""

    @field_serializer("raw_data", when_used="json")
    def _serialize_raw(self, raw: bytes) -> str:
        return raw.decode("utf-8", errors="replace")


class PaymentMethodInfo(BaseModel):
    code: str
    name: str
    display_name: str
    description: str = ""
    is_active: bool = True
    is_online: bool
    fee_type: str = "none"
    fee_value: Decimal = Decimal("0")
    min_amount: Decimal = Decimal("0")
    max_amount: Optional[Decimal] = None
    currency: str = "VND"


# ---- gateway side ----------------------------------------------------------

class GatewayItem(BaseModel):
    name: str
    quantity: int
    price: int  # minor units


class GatewayPaymentRequest(BaseModel):
    order_code: int
    amount: int  # minor units
    description: str
    items: list[GatewayItem] = Field(default_factory=list)
    return_url: str
    cancel_url: str
    expired_at: Optional[int] = None  # unix seconds


class GatewayPaymentLink(BaseModel):
    order_code: int
    amount: int
    checkout_url: str
    qr_code: str = ""
    account_number: str = ""
    account_name: str = ""
    bin: str = ""
    payment_link_id: str = ""
    description: str = ""
    expired_at: Optional[int] = None


class GatewayPaymentInfo(BaseModel):
    order_code: int
    amount: int
    code: str  # gateway status code, mapped by the adapter's status table
    transaction_id: str = ""
    reference: str = ""
    account_number: str = ""
    description: str = ""


class GatewayWebhookEvent(BaseModel):
    order_code: int
    amount: int
    code: str
    transaction_id: str = ""
    reference: str = ""
    data: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)
