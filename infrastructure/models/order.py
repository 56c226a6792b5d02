"""
订单数据库模型 - SQLAlchemy ORM模型
注意：这是基础设施层的实现细节，不是领域模型
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, Text, ForeignKey, Index
from datetime import datetime, timezone

from .base import Base


class OrderModel(Base):
    """
    订单数据库模型

    所有业务规则都在 domain.order.entity.Order 中
    """
    __tablename__ = "orders"

    # 主键
    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(40), unique=True, index=True, nullable=False, comment="订单编号")

    # 参与方
    buyer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True, comment="买家ID")
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True, comment="项目ID")
    seller_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True, comment="卖家ID（下单时从项目解析）")

    # 金额（使用 Numeric 存储精确金额）
    project_price = Column(Numeric(precision=15, scale=2), nullable=False, comment="售价")
    platform_commission = Column(Numeric(precision=15, scale=2), nullable=False, comment="平台佣金")
    seller_earning = Column(Numeric(precision=15, scale=2), nullable=False, comment="卖家收入")
    commission_rate = Column(Numeric(precision=5, scale=2), nullable=False, comment="下单时佣金比例快照(%)")

    # 状态
    status = Column(
        String(30),
        nullable=False,
        default="CREATED",
        index=True,
        comment="订单状态: CREATED/PAYMENT_COMPLETED/COMPLETED/PAYMENT_FAILED"
    )

    # 支付信息
    payment_gateway = Column(String(20), nullable=False, default="RAZORPAY", comment="支付网关")
    payment_order_id = Column(String(100), nullable=True, unique=True, comment="网关侧订单号")
    payment_id = Column(String(100), nullable=True, comment="网关侧支付ID")
    failure_reason = Column(Text, nullable=True, comment="失败原因")

    # 时间戳
    paid_at = Column(DateTime(timezone=True), nullable=True, comment="支付时间")
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
        Index("ix_orders_buyer_created", "buyer_id", "created_at"),
        Index("ix_orders_seller_status", "seller_id", "status"),
    )

    def __repr__(self):
        return (
            f"<OrderModel(id={self.id}, order_number='{self.order_number}', "
            f"price={self.project_price}, status='{self.status}')>"
        )
