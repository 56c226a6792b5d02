"""
Payment DTOs (Pydantic v2) used at application boundaries.
"""
from __future__ import annotations

from typing import Any, Optional
from pydantic import BaseModel, ConfigDict


class PaymentEventType:
    """Internal event names the ledger reacts to."""

    CAPTURED = "payment.captured"
    FAILED = "payment.failed"


class WebhookEvent(BaseModel):
    id: str
    type: str
    provider: str
    data: dict[str, Any]
    # normalized references extracted from the provider payload
    payment_order_id: Optional[str] = None
    payment_id: Optional[str] = None
    error_description: Optional[str] = None
    # raw fields for traceability (optional)
    raw_headers: Optional[dict[str, Any]] = None
    raw_body: Optional[bytes] = None

    model_config = ConfigDict(arbitrary_types_allowed=True)


class PaymentEventResult(BaseModel):
    """Outcome of applying one gateway event to the ledger."""

    event_type: str
    handled: bool
    order_id: Optional[int] = None
    order_status: Optional[str] = None
    already_processed: bool = False
    reason: Optional[str] = None
