"""
钱包流水仓储接口 - 只追加，不提供更新或删除
"""
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import List, Optional

from .entity import WalletTransaction


class WalletTransactionRepository(ABC):

    @abstractmethod
    async def add(self, transaction: WalletTransaction) -> WalletTransaction:
        """追加一条流水"""
        pass

    @abstractmethod
    async def list_by_user(self, user_id: int, skip: int = 0, limit: int = 100) -> List[WalletTransaction]:
        """按时间倒序获取用户流水"""
        pass

    @abstractmethod
    async def count_by_user(self, user_id: int) -> int:
        pass

    @abstractmethod
    async def list_chronological(self, user_id: int) -> List[WalletTransaction]:
        """按写入顺序获取用户全部流水（对账用）"""
        pass

    @abstractmethod
    async def get_latest(self, user_id: int) -> Optional[WalletTransaction]:
        pass

    @abstractmethod
    async def sum_signed_amounts(self, user_id: int) -> Decimal:
        """CREDIT 记正、DEBIT 记负的流水合计"""
        pass

    @abstractmethod
    async def list_by_order(self, order_id: int) -> List[WalletTransaction]:
        pass
