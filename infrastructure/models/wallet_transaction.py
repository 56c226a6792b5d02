"""
钱包流水数据库模型 - 只追加
"""
from sqlalchemy import CheckConstraint, Column, Integer, String, Numeric, DateTime, JSON, ForeignKey, Index
from datetime import datetime, timezone

from .base import Base


class WalletTransactionModel(Base):
    __tablename__ = "wallet_transactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True, comment="钱包所属用户")
    type = Column(String(10), nullable=False, comment="CREDIT/DEBIT")
    source = Column(String(20), nullable=False, comment="SALE/WITHDRAWAL/REFUND")
    amount = Column(Numeric(precision=15, scale=2), nullable=False, comment="金额（正数）")
    balance_before = Column(Numeric(precision=15, scale=2), nullable=False, comment="变更前余额")
    balance_after = Column(Numeric(precision=15, scale=2), nullable=False, comment="变更后余额")
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=True, index=True, comment="关联订单")
    withdrawal_id = Column(Integer, ForeignKey("withdrawals.id"), nullable=True, index=True, comment="关联提现")
    description = Column(String(255), nullable=False, default="", comment="描述")

    # 元数据（使用 extra_metadata 避免与 SQLAlchemy 的 metadata 冲突）
    extra_metadata = Column("metadata", JSON, nullable=True, comment="扩展元数据")

    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="创建时间"
    )

    __table_args__ = (
        Index("ix_wallet_transactions_user_created", "user_id", "created_at"),
        CheckConstraint("amount > 0", name="ck_wallet_transactions_amount_positive"),
    )

    def __repr__(self):
        return (
            f"<WalletTransactionModel(id={self.id}, user_id={self.user_id}, type='{self.type}', "
            f"amount={self.amount}, after={self.balance_after})>"
        )
