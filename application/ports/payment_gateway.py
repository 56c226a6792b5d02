"""
Payment gateway port (application/ports) exposing a replaceable protocol.

Application depends on this Protocol; infrastructure implements adapters.
Only webhook parsing and checkout-callback verification are needed by the
ledger: creating gateway-side orders happens in the checkout flow, outside
this service.
"""
from __future__ import annotations

from typing import Any, Mapping, Protocol, runtime_checkable

from application.dtos.payments import WebhookEvent


@runtime_checkable
class PaymentGateway(Protocol):
    """Gateway protocol for third-party payment providers."""

    provider: str

    def parse_webhook(self, headers: Mapping[str, Any], body: bytes) -> WebhookEvent: ...

    def verify_payment(self, payment_order_id: str, payment_id: str, signature: str) -> None:
        """Authenticate a checkout callback; raises a signature error on mismatch."""
        ...
