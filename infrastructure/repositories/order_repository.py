"""
订单仓储实现 - 使用SQLAlchemy实现数据访问
"""
from typing import Optional, List
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from domain.common.exceptions import OrderNotFoundException
from domain.order.entity import Order, OrderStatus, PaymentGatewayName
from domain.order.repository import OrderRepository
from infrastructure.models.order import OrderModel
from core.logging_config import get_logger


logger = get_logger(__name__)


class SQLAlchemyOrderRepository(OrderRepository):
    """订单仓储的SQLAlchemy实现"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: OrderModel) -> Order:
        """将数据库模型转换为领域实体"""
        return Order(
            id=model.id,
            order_number=model.order_number,
            buyer_id=model.buyer_id,
            project_id=model.project_id,
            seller_id=model.seller_id,
            project_price=Decimal(str(model.project_price)),
            platform_commission=Decimal(str(model.platform_commission)),
            seller_earning=Decimal(str(model.seller_earning)),
            commission_rate=Decimal(str(model.commission_rate)),
            status=OrderStatus(model.status),
            payment_gateway=PaymentGatewayName(model.payment_gateway),
            payment_order_id=model.payment_order_id,
            payment_id=model.payment_id,
            failure_reason=model.failure_reason,
            paid_at=model.paid_at,
            completed_at=model.completed_at,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: Order) -> OrderModel:
        """将领域实体转换为数据库模型"""
        return OrderModel(
            id=entity.id,
            order_number=entity.order_number,
            buyer_id=entity.buyer_id,
            project_id=entity.project_id,
            seller_id=entity.seller_id,
            project_price=entity.project_price,
            platform_commission=entity.platform_commission,
            seller_earning=entity.seller_earning,
            commission_rate=entity.commission_rate,
            status=entity.status.value,
            payment_gateway=entity.payment_gateway.value,
            payment_order_id=entity.payment_order_id,
            payment_id=entity.payment_id,
            failure_reason=entity.failure_reason,
            paid_at=entity.paid_at,
            completed_at=entity.completed_at,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    def _select(self, *criteria, for_update: bool = False):
        stmt = select(OrderModel).where(*criteria)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return stmt

    async def create(self, order: Order) -> Order:
        """创建订单"""
        db_order = self._to_model(order)
        self.session.add(db_order)
        await self.session.flush()
        await self.session.refresh(db_order)
        logger.info(
            "order_created",
            order_id=db_order.id,
            order_number=db_order.order_number,
            project_id=db_order.project_id,
            commission_rate=str(db_order.commission_rate),
        )
        return self._to_entity(db_order)

    async def get_by_id(self, order_id: int, *, for_update: bool = False) -> Optional[Order]:
        """根据ID获取订单"""
        result = await self.session.execute(self._select(OrderModel.id == order_id, for_update=for_update))
        db_order = result.scalar_one_or_none()
        return self._to_entity(db_order) if db_order else None

    async def get_by_payment_order_id(
        self, payment_order_id: str, *, for_update: bool = False
    ) -> Optional[Order]:
        """根据网关订单号获取订单"""
        result = await self.session.execute(
            self._select(OrderModel.payment_order_id == payment_order_id, for_update=for_update)
        )
        db_order = result.scalar_one_or_none()
        return self._to_entity(db_order) if db_order else None

    async def list_by_buyer(self, buyer_id: int, skip: int = 0, limit: int = 100) -> List[Order]:
        """获取买家订单列表"""
        result = await self.session.execute(
            select(OrderModel)
            .where(OrderModel.buyer_id == buyer_id)
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return [self._to_entity(o) for o in result.scalars().all()]

    async def count_by_buyer(self, buyer_id: int) -> int:
        result = await self.session.execute(
            select(func.count(OrderModel.id)).where(OrderModel.buyer_id == buyer_id)
        )
        return result.scalar_one()

    async def update(self, order: Order) -> Order:
        """更新订单"""
        result = await self.session.execute(
            select(OrderModel).where(OrderModel.id == order.id)
        )
        db_order = result.scalar_one_or_none()

        if not db_order:
            raise OrderNotFoundException(order.id)

        # 金额与佣金快照不随状态更新
        db_order.status = order.status.value
        db_order.payment_id = order.payment_id
        db_order.failure_reason = order.failure_reason
        db_order.paid_at = order.paid_at
        db_order.completed_at = order.completed_at
        db_order.updated_at = order.updated_at

        await self.session.flush()
        await self.session.refresh(db_order)

        logger.info(
            "order_updated",
            order_id=db_order.id,
            order_number=db_order.order_number,
            status=db_order.status,
        )
        return self._to_entity(db_order)
