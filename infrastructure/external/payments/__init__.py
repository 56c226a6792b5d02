"""
Factory for payment gateway clients.
"""
from __future__ import annotations

from typing import Optional

from core.settings import payment_settings
from application.ports.payment_gateway import PaymentGateway
from infrastructure.external.payments.exceptions import UnsupportedProviderError


def get_payment_gateway(provider: Optional[str] = None) -> PaymentGateway:
    name = (provider or payment_settings.default_provider).lower()
    if name == "razorpay":
        from .razorpay_client import RazorpayClient
        return RazorpayClient()
    raise UnsupportedProviderError(name)
