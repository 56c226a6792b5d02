"""
Payment gateway codes and webhook event mapping.
"""
from __future__ import annotations

from enum import IntEnum


class PaymentCode(IntEnum):
    # Generic success
    SUCCESS = 0

    # Provider/Network errors (6xxxx)
    PROVIDER_ERROR = 60000
    SIGNATURE_ERROR = 60002
    UNSUPPORTED_PROVIDER = 60005


# Provider webhook event type -> internal ledger event
PROVIDER_EVENT_TO_INTERNAL = {
    "razorpay": {
        "payment.captured": "payment.captured",
        "order.paid": "payment.captured",
        "payment.failed": "payment.failed",
    },
}
