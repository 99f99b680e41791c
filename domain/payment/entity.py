"""
支付领域实体 - 支付方式、支付状态与订单只读视图
"""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from domain.common.exceptions import DomainValidationException


class PaymentMethod(str, Enum):
    """支付方式枚举（由调用方在每次操作时显式提供）"""
    ONLINE_GATEWAY = "vietqr"     # 在线网关（VietQR / 银行转账二维码）
    CASH_ON_DELIVERY = "cod"      # 货到付款


class PaymentStatus(str, Enum):
    """支付状态枚举（各网关状态码统一映射到此）"""
    PENDING = "pending"       # 待支付
    PAID = "paid"             # 已支付
    FAILED = "failed"         # 支付失败
    CANCELLED = "cancelled"   # 已取消

    @property
    def is_terminal(self) -> bool:
        return self is not PaymentStatus.PENDING


@dataclass(frozen=True)
class OrderItem:
    name: str
    quantity: int
    unit_price: Decimal

    def __post_init__(self) -> None:
        if self.quantity <= 0:
            raise DomainValidationException("Quantity must be positive", field="quantity")
        if self.unit_price < 0:
            raise DomainValidationException("Unit price must not be negative", field="unit_price")


@dataclass(frozen=True)
class Order:
    """
    订单只读视图 - 由订单持久化层提供，本模块只消费其形状

    业务规则：
    1. 金额以主货币单位（Decimal）表示
    2. 订单项顺序保持不变
    """

    id: int
    order_number: str
    total_amount: Decimal
    items: tuple[OrderItem, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.total_amount < 0:
            raise DomainValidationException("Total amount must not be negative", field="total_amount")
        # Accept any iterable of items, keep them immutable
        object.__setattr__(self, "items", tuple(self.items))
