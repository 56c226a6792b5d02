"""
钱包流水实体 - 只追加、不可变的账本记录
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from domain.common.exceptions import DomainValidationException
from domain.common.money import to_money


class TransactionType(str, Enum):
    CREDIT = "CREDIT"
    DEBIT = "DEBIT"


class TransactionSource(str, Enum):
    SALE = "SALE"
    WITHDRAWAL = "WITHDRAWAL"
    REFUND = "REFUND"


@dataclass(frozen=True)
class WalletTransaction:
    """
    钱包流水

    业务规则：
    1. 金额必须大于0
    2. CREDIT: balance_after == balance_before + amount
       DEBIT:  balance_after == balance_before - amount
    3. 写入后不可修改（frozen）
    """

    id: Optional[int]
    user_id: int
    type: TransactionType
    source: TransactionSource
    amount: Decimal
    balance_before: Decimal
    balance_after: Decimal
    description: str = ""
    order_id: Optional[int] = None
    withdrawal_id: Optional[int] = None
    metadata: dict = field(default_factory=dict)
    created_at: Optional[datetime] = None

    def __post_init__(self):
        # frozen dataclass 只能通过 object.__setattr__ 规范化
        object.__setattr__(self, "type", TransactionType(self.type))
        object.__setattr__(self, "source", TransactionSource(self.source))
        object.__setattr__(self, "amount", to_money(self.amount))
        object.__setattr__(self, "balance_before", to_money(self.balance_before))
        object.__setattr__(self, "balance_after", to_money(self.balance_after))
        if self.created_at is not None and self.created_at.tzinfo is None:
            object.__setattr__(self, "created_at", self.created_at.replace(tzinfo=timezone.utc))
        if self.amount <= 0:
            raise DomainValidationException(f"Transaction amount must be greater than 0: {self.amount}", field="amount")
        if self.balance_after != self.balance_before + self.signed_amount:
            raise DomainValidationException(
                "Balance after does not match balance before and amount",
                field="balance_after",
                details={
                    "balance_before": str(self.balance_before),
                    "balance_after": str(self.balance_after),
                    "amount": str(self.amount),
                    "type": self.type.value,
                },
            )

    @property
    def signed_amount(self) -> Decimal:
        """CREDIT 为正，DEBIT 为负"""
        return self.amount if self.type == TransactionType.CREDIT else -self.amount
