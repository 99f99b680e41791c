"""
Payment-related settings using pydantic-settings v2 with nested env keys.

This module is isolated so core.config.Settings stays focused on the app.
Instances are passed explicitly to the composition root; nothing in the
payment core reads the module-level object directly.
"""
from __future__ import annotations

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field


class PaymentTimeouts(BaseModel):
    connect: float = 1.0
    read: float = 10.0
    write: float = 10.0
    total: float = 30.0


class WebhookSettings(BaseModel):
    signature_headers: list[str] = Field(default_factory=lambda: ["X-PayOS-Signature", "X-Signature"])


class PayOSSettings(BaseModel):
    client_id: Optional[str] = None
    api_key: Optional[str] = None
    checksum_key: Optional[str] = None
    base_url: str = "https://api-merchant.payos.vn"
    # Gateway amounts are integers: amount * 10**amount_exponent
    amount_exponent: int = 2
    max_minor_units: int = 9_007_199_254_740_991
    currency: str = "VND"


class PaymentLinkSettings(BaseModel):
    base_url: str = "https://your-domain.com"
    return_path: str = "/payment/success?order_id={order_id}"
    cancel_path: str = "/payment/cancel?order_id={order_id}"
    description_template: str = "Thanh toan don hang #{order_number}"


class ExpirySettings(BaseModel):
    online_hours: int = 24
    cod_days: int = 7


class PaymentSettings(BaseSettings):
    enabled_methods: list[str] = Field(default_factory=lambda: ["vietqr", "cod"])
    timeouts: PaymentTimeouts = Field(default_factory=PaymentTimeouts)
    webhook: WebhookSettings = Field(default_factory=WebhookSettings)
    links: PaymentLinkSettings = Field(default_factory=PaymentLinkSettings)
    expiry: ExpirySettings = Field(default_factory=ExpirySettings)

    payos: PayOSSettings = Field(default_factory=PayOSSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )


payment_settings = PaymentSettings()
