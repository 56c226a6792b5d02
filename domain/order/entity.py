"""
订单领域实体 - 一次购买尝试及其佣金拆分
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Optional

from domain.common.exceptions import DomainValidationException, PreconditionFailedException
from domain.common.money import MINOR_UNIT, to_money


class OrderStatus(str, Enum):
    """订单状态枚举"""
    CREATED = "CREATED"
    PAYMENT_COMPLETED = "PAYMENT_COMPLETED"
    COMPLETED = "COMPLETED"
    PAYMENT_FAILED = "PAYMENT_FAILED"


class PaymentGatewayName(str, Enum):
    RAZORPAY = "RAZORPAY"
    MANUAL = "MANUAL"


SETTLED_STATUSES = (OrderStatus.COMPLETED, OrderStatus.PAYMENT_COMPLETED)


def _ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """确保时间为 UTC 时区"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def calculate_commission(price: Decimal, rate: Decimal) -> tuple[Decimal, Decimal]:
    """
    计算佣金拆分

    platform_commission = round(price * rate / 100)，四舍五入到最小货币单位；
    seller_earning = price - platform_commission，两者之和恒等于 price。
    """
    price = to_money(price)
    if isinstance(rate, float):
        raise DomainValidationException(f"Commission rate must be Decimal or string, not float: {rate!r}", field="commission_rate")
    rate = Decimal(str(rate))
    if rate < 0 or rate > 100:
        raise DomainValidationException(f"Commission rate must be between 0 and 100: {rate}", field="commission_rate")
    commission = (price * rate / Decimal(100)).quantize(MINOR_UNIT, rounding=ROUND_HALF_UP)
    return commission, price - commission


@dataclass
class Order:
    """
    订单聚合根

    业务规则：
    1. 佣金比例在创建时快照，之后不再从平台配置重新读取
    2. platform_commission + seller_earning == project_price
    3. 只能从 CREATED 转为 COMPLETED 或 PAYMENT_FAILED
    """

    id: Optional[int]
    order_number: str
    buyer_id: int
    project_id: int
    seller_id: int
    project_price: Decimal
    platform_commission: Decimal
    seller_earning: Decimal
    commission_rate: Decimal
    status: OrderStatus = OrderStatus.CREATED
    payment_gateway: PaymentGatewayName = PaymentGatewayName.RAZORPAY
    payment_order_id: Optional[str] = None
    payment_id: Optional[str] = None
    failure_reason: Optional[str] = None
    paid_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        self.project_price = to_money(self.project_price)
        self.platform_commission = to_money(self.platform_commission)
        self.seller_earning = to_money(self.seller_earning)
        self.commission_rate = Decimal(str(self.commission_rate))
        if isinstance(self.status, str):
            self.status = OrderStatus(self.status)
        if isinstance(self.payment_gateway, str):
            self.payment_gateway = PaymentGatewayName(self.payment_gateway)
        self._validate_split()
        self.paid_at = _ensure_utc(self.paid_at)
        self.completed_at = _ensure_utc(self.completed_at)
        self.created_at = _ensure_utc(self.created_at)
        self.updated_at = _ensure_utc(self.updated_at)

    def _validate_split(self) -> None:
        """业务规则：佣金 + 卖家收入 必须等于售价"""
        if self.platform_commission + self.seller_earning != self.project_price:
            raise DomainValidationException(
                "Commission plus seller earning must equal the price",
                field="seller_earning",
                details={
                    "project_price": str(self.project_price),
                    "platform_commission": str(self.platform_commission),
                    "seller_earning": str(self.seller_earning),
                },
            )

    @classmethod
    def place(
        cls,
        *,
        order_number: str,
        buyer_id: int,
        project_id: int,
        seller_id: int,
        price: Decimal,
        commission_rate: Decimal,
        payment_gateway: PaymentGatewayName = PaymentGatewayName.RAZORPAY,
        payment_order_id: Optional[str] = None,
    ) -> "Order":
        commission, earning = calculate_commission(price, commission_rate)
        now = datetime.now(timezone.utc)
        return cls(
            id=None,
            order_number=order_number,
            buyer_id=buyer_id,
            project_id=project_id,
            seller_id=seller_id,
            project_price=price,
            platform_commission=commission,
            seller_earning=earning,
            commission_rate=commission_rate,
            status=OrderStatus.CREATED,
            payment_gateway=payment_gateway,
            payment_order_id=payment_order_id,
            created_at=now,
            updated_at=now,
        )

    def is_settled(self) -> bool:
        """已入账（重复回调时据此跳过）"""
        return self.status in SETTLED_STATUSES

    def mark_completed(self, payment_id: Optional[str]) -> None:
        """
        标记订单完成

        业务规则：只能从 CREATED 转为 COMPLETED
        """
        if self.status != OrderStatus.CREATED:
            raise PreconditionFailedException(
                f"Order cannot be completed from status {self.status.value}",
                error_type="InvalidOrderTransition",
                details={"order_id": self.id, "status": self.status.value},
            )
        now = datetime.now(timezone.utc)
        self.status = OrderStatus.COMPLETED
        if payment_id:
            self.payment_id = payment_id
        self.paid_at = now
        self.completed_at = now
        self.updated_at = now
        self.failure_reason = None

    def mark_failed(self, reason: Optional[str] = None) -> None:
        """标记支付失败，已入账的订单不可再标记失败"""
        if self.status != OrderStatus.CREATED:
            raise PreconditionFailedException(
                f"Order cannot fail from status {self.status.value}",
                error_type="InvalidOrderTransition",
                details={"order_id": self.id, "status": self.status.value},
            )
        self.status = OrderStatus.PAYMENT_FAILED
        self.failure_reason = reason
        self.updated_at = datetime.now(timezone.utc)
