"""
订单领域服务 - 下单佣金快照与支付确认入账
"""
from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from domain.audit.entity import AuditAction, AuditLog
from domain.audit.repository import AuditLogRepository
from domain.common.exceptions import (
    DomainValidationException,
    OrderNotFoundException,
    PreconditionFailedException,
    ProjectNotFoundException,
    ProjectNotPurchasableException,
)
from domain.common.identifiers import generate_reference
from domain.project.repository import ProjectRepository
from domain.wallet.entity import TransactionSource
from domain.wallet.service import WalletDomainService
from .entity import Order, OrderStatus, PaymentGatewayName
from .events import OrderPaymentConfirmed, OrderPaymentFailed, OrderPlaced
from .repository import OrderRepository


class OrderDomainService:
    """
    订单领域服务

    职责：
    1. 下单：校验项目可售，按当时佣金比例计算并快照拆分
    2. 支付确认：幂等检查后，订单完成、卖家入账、写流水、销量+1
    3. 支付失败：记录失败原因
    4. 产生领域事件
    """

    def __init__(
        self,
        order_repository: OrderRepository,
        project_repository: ProjectRepository,
        wallet_service: WalletDomainService,
        audit_repository: AuditLogRepository,
    ):
        self.order_repository = order_repository
        self.project_repository = project_repository
        self.wallet_service = wallet_service
        self.audit_repository = audit_repository
        self.events: List = []  # 领域事件收集

    async def place_order(
        self,
        buyer_id: int,
        project_id: int,
        *,
        commission_rate: Decimal,
        payment_gateway: PaymentGatewayName = PaymentGatewayName.RAZORPAY,
        payment_order_id: Optional[str] = None,
    ) -> Order:
        """
        创建订单

        业务规则：
        1. 项目必须存在且为 APPROVED
        2. 卖家不能购买自己的项目
        3. 佣金比例只在此处读取一次并写入订单
        """
        project = await self.project_repository.get_by_id(project_id)
        if not project:
            raise ProjectNotFoundException(project_id)
        if not project.is_purchasable():
            raise ProjectNotPurchasableException(project_id, project.status.value)
        if project.seller_id == buyer_id:
            raise DomainValidationException("You cannot purchase your own project", field="project_id")

        order = Order.place(
            order_number=generate_reference("ORD"),
            buyer_id=buyer_id,
            project_id=project.id,
            seller_id=project.seller_id,
            price=project.price,
            commission_rate=commission_rate,
            payment_gateway=payment_gateway,
            payment_order_id=payment_order_id,
        )
        created = await self.order_repository.create(order)

        self.events.append(OrderPlaced(
            order_id=created.id,
            order_number=created.order_number,
            buyer_id=created.buyer_id,
            seller_id=created.seller_id,
            project_price=str(created.project_price),
        ))
        return created

    async def confirm_payment(
        self,
        order: Order,
        payment_id: Optional[str],
        *,
        actor_id: Optional[int] = None,
    ) -> tuple[Order, bool]:
        """
        确认支付并为卖家入账

        调用方须已在当前事务内锁定订单行。返回 (订单, 是否本次处理)；
        订单已入账时直接返回，不做任何修改。
        """
        if order.is_settled():
            return order, False
        if order.status == OrderStatus.PAYMENT_FAILED:
            raise PreconditionFailedException(
                "Payment for this order has already failed",
                error_type="OrderPaymentFailed",
                details={"order_id": order.id, "status": order.status.value},
            )

        order.mark_completed(payment_id)
        updated = await self.order_repository.update(order)

        # 入账金额取自订单快照，不重新计算；收入为 0 时订单照常完成，不写流水
        if updated.seller_earning > 0:
            await self.wallet_service.credit(
                updated.seller_id,
                updated.seller_earning,
                source=TransactionSource.SALE,
                description=f"Sale of order {updated.order_number}",
                order_id=updated.id,
                metadata={
                    "order_number": updated.order_number,
                    "payment_id": updated.payment_id,
                    "buyer_id": updated.buyer_id,
                    "project_id": updated.project_id,
                    "project_price": str(updated.project_price),
                    "platform_commission": str(updated.platform_commission),
                },
            )
        await self.project_repository.increment_sales(updated.project_id)

        if actor_id is not None:
            await self.audit_repository.add(AuditLog(
                id=None,
                actor_id=actor_id,
                action=AuditAction.ORDER_MANUALLY_CONFIRMED,
                entity_type="order",
                entity_id=str(updated.id),
                changes={"status": updated.status.value, "payment_id": updated.payment_id},
            ))

        self.events.append(OrderPaymentConfirmed(
            order_id=updated.id,
            order_number=updated.order_number,
            buyer_id=updated.buyer_id,
            seller_id=updated.seller_id,
            project_id=updated.project_id,
            project_price=str(updated.project_price),
            seller_earning=str(updated.seller_earning),
            payment_id=updated.payment_id,
        ))
        return updated, True

    async def mark_payment_failed(self, order: Order, reason: Optional[str]) -> tuple[Order, bool]:
        """标记支付失败；已失败的订单直接返回"""
        if order.status == OrderStatus.PAYMENT_FAILED:
            return order, False
        order.mark_failed(reason)
        updated = await self.order_repository.update(order)
        self.events.append(OrderPaymentFailed(
            order_id=updated.id,
            order_number=updated.order_number,
            buyer_id=updated.buyer_id,
            reason=reason,
        ))
        return updated, True

    async def get_locked_order(self, order_id: int) -> Order:
        order = await self.order_repository.get_by_id(order_id, for_update=True)
        if not order:
            raise OrderNotFoundException(order_id)
        return order

    def clear_events(self) -> List:
        """清空并返回领域事件"""
        events = self.events.copy()
        self.events.clear()
        return events
