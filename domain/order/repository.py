"""
订单仓储接口
"""
from abc import ABC, abstractmethod
from typing import Optional, List

from .entity import Order


class OrderRepository(ABC):
    """订单仓储抽象接口"""

    @abstractmethod
    async def create(self, order: Order) -> Order:
        """创建订单"""
        pass

    @abstractmethod
    async def get_by_id(self, order_id: int, *, for_update: bool = False) -> Optional[Order]:
        """根据ID获取订单"""
        pass

    @abstractmethod
    async def get_by_payment_order_id(
        self, payment_order_id: str, *, for_update: bool = False
    ) -> Optional[Order]:
        """根据支付网关订单号获取订单"""
        pass

    @abstractmethod
    async def list_by_buyer(self, buyer_id: int, skip: int = 0, limit: int = 100) -> List[Order]:
        """获取买家订单列表（按创建时间倒序）"""
        pass

    @abstractmethod
    async def count_by_buyer(self, buyer_id: int) -> int:
        pass

    @abstractmethod
    async def update(self, order: Order) -> Order:
        """更新订单状态与支付信息"""
        pass
