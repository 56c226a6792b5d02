"""
提现仓储接口
"""
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from .entity import Withdrawal, WithdrawalStatus


class WithdrawalRepository(ABC):

    @abstractmethod
    async def create(self, withdrawal: Withdrawal) -> Withdrawal:
        pass

    @abstractmethod
    async def get_by_id(self, withdrawal_id: int, *, for_update: bool = False) -> Optional[Withdrawal]:
        pass

    @abstractmethod
    async def list_by_seller(self, seller_id: int, skip: int = 0, limit: int = 100) -> List[Withdrawal]:
        """按创建时间倒序"""
        pass

    @abstractmethod
    async def count_by_seller(self, seller_id: int) -> int:
        pass

    @abstractmethod
    async def list_by_statuses(self, statuses: Sequence[WithdrawalStatus]) -> List[Withdrawal]:
        """按创建时间正序（先到先审）"""
        pass

    @abstractmethod
    async def update(self, withdrawal: Withdrawal) -> Withdrawal:
        pass
