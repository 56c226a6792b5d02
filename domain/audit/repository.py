"""审计日志仓储接口"""
from abc import ABC, abstractmethod
from typing import List

from .entity import AuditLog


class AuditLogRepository(ABC):

    @abstractmethod
    async def add(self, entry: AuditLog) -> AuditLog:
        pass

    @abstractmethod
    async def list_for_entity(self, entity_type: str, entity_id: str) -> List[AuditLog]:
        pass
