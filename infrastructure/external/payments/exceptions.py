"""
Gateway errors raised while verifying and parsing webhook deliveries.
"""
from __future__ import annotations

from typing import Optional

from domain.common.exceptions import BusinessException
from shared.codes.payment_codes import PaymentCode


class PaymentError(BusinessException):
    """Base for gateway errors; ``details`` always names the provider."""

    code: int = PaymentCode.PROVIDER_ERROR
    error_type: str = "PaymentError"

    def __init__(self, message: str, *, provider: str, details: Optional[dict] = None):
        super().__init__(
            code=self.code,
            message=message,
            error_type=self.error_type,
            details={"provider": provider, **(details or {})},
        )
        self.provider = provider


class PaymentProviderError(PaymentError):
    """Unusable delivery or gateway misconfiguration (missing secret, bad JSON)."""

    code = PaymentCode.PROVIDER_ERROR
    error_type = "PaymentProviderError"


class PaymentSignatureError(PaymentError):
    """HMAC signature missing or not matching the raw body."""

    code = PaymentCode.SIGNATURE_ERROR
    error_type = "PaymentSignatureError"


class UnsupportedProviderError(PaymentError):
    code = PaymentCode.UNSUPPORTED_PROVIDER
    error_type = "UnsupportedProvider"

    def __init__(self, provider: str):
        super().__init__(f"Unsupported payment provider: {provider}", provider=provider)
