"""领域层业务异常定义，供领域与基础设施使用。

核心（core）层仅负责全局映射与异常处理，尽量避免领域层反向依赖核心层。
"""
from __future__ import annotations

from typing import Any, Optional

from shared.codes import BusinessCode
from shared.codes.payment_codes import PaymentCode


class BusinessException(Exception):
    """业务异常基类"""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        super().__init__(self.message)


class DomainValidationException(BusinessException):
    def __init__(self, message: str, *, field: str | None = None, details: dict | None = None):
        super().__init__(
            code=BusinessCode.PARAM_VALIDATION_ERROR,
            message=message,
            error_type="DomainValidationError",
            details=details,
            field=field,
        )


class UnsupportedPaymentMethodException(BusinessException):
    """No strategy is registered for the requested payment method."""

    def __init__(self, method: Any, *, operation: str | None = None):
        details = {"payment_method": str(getattr(method, "value", method))}
        if operation:
            details["operation"] = operation
        super().__init__(
            code=PaymentCode.UNSUPPORTED_METHOD,
            message=f"Unsupported payment method: {details['payment_method']}",
            error_type="UnsupportedPaymentMethod",
            details=details,
            field="payment_method",
        )


class InvalidAmountException(BusinessException):
    def __init__(self, amount: Any, reason: str, *, details: Optional[dict] = None):
        self.amount = amount
        self.reason = reason
        full_details: dict[str, Any] = {"amount": str(amount), "reason": reason}
        if details:
            full_details.update(details)
        super().__init__(
            code=PaymentCode.INVALID_AMOUNT,
            message=f"Invalid amount {amount!r}: {reason}",
            error_type="InvalidAmount",
            details=full_details,
            field="amount",
        )

    def with_context(self, **context: Any) -> "InvalidAmountException":
        """Same error with operation / method / identifiers merged into details."""
        details = {k: v for k, v in (self.details or {}).items() if k not in ("amount", "reason")}
        details.update({k: getattr(v, "value", v) for k, v in context.items()})
        return InvalidAmountException(self.amount, self.reason, details=details)


class MalformedWebhookException(BusinessException):
    """Webhook payload could not be parsed; the raw bytes are kept for diagnostics."""

    def __init__(self, reason: str, *, raw_body: bytes, payment_method: str | None = None):
        self.raw_body = raw_body
        details: dict[str, Any] = {"reason": reason, "body_size": len(raw_body or b"")}
        if payment_method:
            details["payment_method"] = payment_method
        super().__init__(
            code=PaymentCode.MALFORMED_WEBHOOK,
            message=f"Malformed webhook payload: {reason}",
            error_type="MalformedWebhook",
            details=details,
        )


class PaymentGatewayError(BusinessException):
    """Base for errors raised by a gateway client adapter."""

    payment_code: PaymentCode = PaymentCode.GATEWAY_REJECTED
    error_type: str = "PaymentGatewayError"

    def __init__(
        self,
        message: str,
        *,
        provider: str,
        provider_code: str | None = None,
        details: Optional[dict] = None,
    ):
        full_details: dict[str, Any] = {"provider": provider, "provider_code": provider_code}
        if details:
            full_details.update(details)
        self.provider = provider
        self.provider_code = provider_code
        super().__init__(
            code=self.payment_code,
            message=message,
            error_type=self.error_type,
            details=full_details,
        )

    def with_context(self, message: str, **context: Any) -> "PaymentGatewayError":
        """Return an error of the same class prefixed with ``message``.

        ``context`` (operation, payment method, identifiers) is merged into
        the details so the caller can log and correlate.
        """
        details = dict(self.details or {})
        details.update({k: getattr(v, "value", v) for k, v in context.items()})
        details.pop("provider", None)
        details.pop("provider_code", None)
        return type(self)(
            f"{message}: {self.message}",
            provider=self.provider,
            provider_code=self.provider_code,
            details=details,
        )


class GatewayUnavailableException(PaymentGatewayError):
    """Transport failure, timeout or 5xx; safe to retry at the caller's discretion."""

    payment_code = PaymentCode.GATEWAY_UNAVAILABLE
    error_type = "GatewayUnavailable"


class GatewayRejectedException(PaymentGatewayError):
    """Business-level rejection reported by the gateway; not retryable."""

    payment_code = PaymentCode.GATEWAY_REJECTED
    error_type = "GatewayRejected"


class PaymentNotFoundException(PaymentGatewayError):
    payment_code = PaymentCode.PAYMENT_NOT_FOUND
    error_type = "PaymentNotFound"


class InvalidWebhookSignatureException(BusinessException):
    def __init__(self, payment_method: str):
        super().__init__(
            code=PaymentCode.SIGNATURE_INVALID,
            message="Invalid webhook signature",
            error_type="InvalidWebhookSignature",
            details={"payment_method": payment_method},
        )
