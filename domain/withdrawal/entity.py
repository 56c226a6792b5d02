"""
提现领域实体 - 卖家提现申请及其审核状态机
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from domain.common.exceptions import (
    DomainValidationException,
    PreconditionFailedException,
    WithdrawalAlreadyReviewedException,
)
from domain.common.money import to_money


class WithdrawalStatus(str, Enum):
    """提现状态枚举"""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"


class ReviewDecision(str, Enum):
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


OPEN_STATUSES = (WithdrawalStatus.PENDING, WithdrawalStatus.APPROVED, WithdrawalStatus.PROCESSING)


def _ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass
class Withdrawal:
    """
    提现聚合根

    状态机：PENDING → APPROVED → [PROCESSING] → COMPLETED
           PENDING → REJECTED（同一事务内退款）

    资金在申请时即已扣减，审核通过与完成打款都不再变动钱包余额。
    """

    id: Optional[int]
    withdrawal_number: str
    seller_id: int
    amount: Decimal
    bank_details: dict = field(default_factory=dict)
    status: WithdrawalStatus = WithdrawalStatus.PENDING
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = None
    rejected_at: Optional[datetime] = None
    transaction_id: Optional[str] = None
    payment_proof: Optional[str] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        self.amount = to_money(self.amount)
        if self.amount <= 0:
            raise DomainValidationException(f"Withdrawal amount must be greater than 0: {self.amount}", field="amount")
        if isinstance(self.status, str):
            self.status = WithdrawalStatus(self.status)
        if self.bank_details is None:
            self.bank_details = {}
        self.reviewed_at = _ensure_utc(self.reviewed_at)
        self.rejected_at = _ensure_utc(self.rejected_at)
        self.completed_at = _ensure_utc(self.completed_at)
        self.created_at = _ensure_utc(self.created_at)
        self.updated_at = _ensure_utc(self.updated_at)

    def _ensure_pending(self) -> None:
        """业务规则：只有 PENDING 状态可以审核"""
        if self.status != WithdrawalStatus.PENDING:
            raise WithdrawalAlreadyReviewedException(self.id, self.status.value)

    def _record_review(self, reviewer_id: int, notes: Optional[str]) -> datetime:
        now = datetime.now(timezone.utc)
        self.reviewed_by = reviewer_id
        self.reviewed_at = now
        self.review_notes = notes
        self.updated_at = now
        return now

    def approve(self, reviewer_id: int, notes: Optional[str] = None) -> None:
        self._ensure_pending()
        self._record_review(reviewer_id, notes)
        self.status = WithdrawalStatus.APPROVED

    def reject(self, reviewer_id: int, notes: Optional[str] = None) -> None:
        """驳回；退款由领域服务在同一事务内完成"""
        self._ensure_pending()
        self.rejected_at = self._record_review(reviewer_id, notes)
        self.status = WithdrawalStatus.REJECTED

    def mark_processing(self) -> None:
        if self.status != WithdrawalStatus.APPROVED:
            raise PreconditionFailedException(
                "Only approved withdrawals can be processed",
                error_type="InvalidWithdrawalTransition",
                details={"withdrawal_id": self.id, "status": self.status.value},
            )
        self.status = WithdrawalStatus.PROCESSING
        self.updated_at = datetime.now(timezone.utc)

    def complete(self, transaction_id: str, payment_proof: Optional[str] = None) -> None:
        """
        标记打款完成

        业务规则：
        1. 只能从 APPROVED 或 PROCESSING 完成
        2. 必须提供外部转账流水号
        """
        if self.status not in (WithdrawalStatus.APPROVED, WithdrawalStatus.PROCESSING):
            raise PreconditionFailedException(
                "Withdrawal must be approved before completion",
                error_type="InvalidWithdrawalTransition",
                details={"withdrawal_id": self.id, "status": self.status.value},
            )
        if not (transaction_id or "").strip():
            raise DomainValidationException("Transaction ID is required", field="transaction_id")
        now = datetime.now(timezone.utc)
        self.status = WithdrawalStatus.COMPLETED
        self.transaction_id = transaction_id.strip()
        self.payment_proof = payment_proof
        self.completed_at = now
        self.updated_at = now

    def is_open(self) -> bool:
        return self.status in OPEN_STATUSES
