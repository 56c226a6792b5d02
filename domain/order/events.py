"""
Order domain events.

Dataclass events record ledger facts for handling after the transaction
commits (buyer/seller notifications). Domain remains free of infrastructure imports.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
import uuid


@dataclass
class OrderEvent:
    order_id: int
    order_number: str
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class OrderPlaced(OrderEvent):
    buyer_id: int = 0
    seller_id: int = 0
    project_price: str = ""


@dataclass
class OrderPaymentConfirmed(OrderEvent):
    buyer_id: int = 0
    seller_id: int = 0
    project_id: int = 0
    project_price: str = ""
    seller_earning: str = ""
    payment_id: Optional[str] = None


@dataclass
class OrderPaymentFailed(OrderEvent):
    buyer_id: int = 0
    reason: Optional[str] = None
