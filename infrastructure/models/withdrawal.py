"""
提现数据库模型
"""
from sqlalchemy import CheckConstraint, Column, Integer, String, Numeric, DateTime, Text, JSON, ForeignKey, Index
from datetime import datetime, timezone

from .base import Base


class WithdrawalModel(Base):
    __tablename__ = "withdrawals"

    id = Column(Integer, primary_key=True, index=True)
    withdrawal_number = Column(String(40), unique=True, index=True, nullable=False, comment="提现编号")
    seller_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True, comment="卖家ID")
    amount = Column(Numeric(precision=15, scale=2), nullable=False, comment="提现金额")
    bank_details = Column(JSON, nullable=False, comment="申请时的收款信息快照")
    status = Column(
        String(20),
        nullable=False,
        default="PENDING",
        index=True,
        comment="状态: PENDING/APPROVED/PROCESSING/COMPLETED/REJECTED"
    )

    # 审核
    reviewed_by = Column(Integer, ForeignKey("users.id"), nullable=True, comment="审核人")
    reviewed_at = Column(DateTime(timezone=True), nullable=True, comment="审核时间")
    review_notes = Column(Text, nullable=True, comment="审核备注")
    rejected_at = Column(DateTime(timezone=True), nullable=True, comment="驳回时间")

    # 打款
    transaction_id = Column(String(100), nullable=True, comment="外部转账流水号")
    payment_proof = Column(String(500), nullable=True, comment="打款凭证")
    completed_at = Column(DateTime(timezone=True), nullable=True, comment="完成时间")

    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="创建时间"
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="更新时间"
    )

    __table_args__ = (
        Index("ix_withdrawals_seller_created", "seller_id", "created_at"),
        Index("ix_withdrawals_status_created", "status", "created_at"),
        CheckConstraint("amount > 0", name="ck_withdrawals_amount_positive"),
    )

    def __repr__(self):
        return (
            f"<WithdrawalModel(id={self.id}, number='{self.withdrawal_number}', "
            f"amount={self.amount}, status='{self.status}')>"
        )
