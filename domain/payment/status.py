"""
Gateway status code -> canonical PaymentStatus mapping.
"""
from __future__ import annotations

from typing import Mapping, Optional

from domain.payment.entity import PaymentStatus


def map_status_code(code: Optional[str], table: Mapping[str, str]) -> PaymentStatus:
    """Map a gateway-specific code into a PaymentStatus.

    Total and deterministic: codes missing from ``table`` (including ``None``)
    map to ``PENDING`` so an event is never dropped.
    """
    if code is None:
        return PaymentStatus.PENDING
    value = table.get(str(code).strip())
    if value is None:
        return PaymentStatus.PENDING
    try:
        return PaymentStatus(value)
    except ValueError:
        return PaymentStatus.PENDING
