"""
Withdrawal domain events, handed to the notification port after commit.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
import uuid


@dataclass
class WithdrawalEvent:
    withdrawal_id: int
    withdrawal_number: str
    seller_id: int
    amount: str
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class WithdrawalRequested(WithdrawalEvent):
    pass


@dataclass
class WithdrawalReviewed(WithdrawalEvent):
    status: str = ""
    notes: Optional[str] = None


@dataclass
class WithdrawalCompleted(WithdrawalEvent):
    transaction_id: str = ""
