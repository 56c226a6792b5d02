"""
用户仓储接口 - 定义数据访问的抽象接口
"""
from abc import ABC, abstractmethod
from typing import Optional
from .entity import User


class UserRepository(ABC):
    """用户仓储抽象接口 - 只定义能做什么，不管怎么做"""

    @abstractmethod
    async def create(self, user: User) -> User:
        """创建用户"""
        pass

    @abstractmethod
    async def get_by_id(self, user_id: int, *, for_update: bool = False) -> Optional[User]:
        """根据ID获取用户；for_update=True 时对该行加锁直至事务结束"""
        pass

    @abstractmethod
    async def update(self, user: User) -> User:
        """更新用户（携带版本号做乐观校验）"""
        pass
