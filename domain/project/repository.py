"""
项目仓储接口
"""
from abc import ABC, abstractmethod
from typing import Optional

from .entity import Project


class ProjectRepository(ABC):

    @abstractmethod
    async def create(self, project: Project) -> Project:
        pass

    @abstractmethod
    async def get_by_id(self, project_id: int) -> Optional[Project]:
        pass

    @abstractmethod
    async def increment_sales(self, project_id: int) -> None:
        """销量 +1（原子自增，不做读改写）"""
        pass
