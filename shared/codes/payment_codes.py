"""
Payment specific codes and provider status mapping.
"""
from __future__ import annotations

from enum import IntEnum


class PaymentCode(IntEnum):
    # Generic success
    SUCCESS = 0

    # Caller errors (6xxxx)
    UNSUPPORTED_METHOD = 60000
    INVALID_AMOUNT = 60001
    MALFORMED_WEBHOOK = 60002
    SIGNATURE_INVALID = 60003

    # Provider/Network errors (61xxx)
    GATEWAY_UNAVAILABLE = 61000
    GATEWAY_REJECTED = 61001
    PAYMENT_NOT_FOUND = 61002


# Provider code -> canonical PaymentStatus value. Codes are not comparable
# across providers, so every adapter looks up its own table by provider name.
PROVIDER_STATUS_TO_INTERNAL = {
    "payos": {
        # Webhook / payment-request result codes
        "00": "paid",
        "01": "pending",
        "02": "failed",
        "03": "cancelled",
        # Payment link states returned by GET /v2/payment-requests/{id}
        "PAID": "paid",
        "PENDING": "pending",
        "PROCESSING": "pending",
        "UNDERPAID": "pending",
        "FAILED": "failed",
        "CANCELLED": "cancelled",
        "EXPIRED": "cancelled",
    },
}
