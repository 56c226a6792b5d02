"""
审计日志仓储实现
"""
from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from domain.audit.entity import AuditAction, AuditLog
from domain.audit.repository import AuditLogRepository
from infrastructure.models.audit_log import AuditLogModel


class SQLAlchemyAuditLogRepository(AuditLogRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: AuditLogModel) -> AuditLog:
        return AuditLog(
            id=model.id,
            actor_id=model.actor_id,
            action=AuditAction(model.action),
            entity_type=model.entity_type,
            entity_id=model.entity_id,
            changes=model.changes or {},
            created_at=model.created_at,
        )

    async def add(self, entry: AuditLog) -> AuditLog:
        db_entry = AuditLogModel(
            actor_id=entry.actor_id,
            action=entry.action.value,
            entity_type=entry.entity_type,
            entity_id=entry.entity_id,
            changes=entry.changes,
        )
        self.session.add(db_entry)
        await self.session.flush()
        await self.session.refresh(db_entry)
        return self._to_entity(db_entry)

    async def list_for_entity(self, entity_type: str, entity_id: str) -> List[AuditLog]:
        result = await self.session.execute(
            select(AuditLogModel)
            .where(AuditLogModel.entity_type == entity_type, AuditLogModel.entity_id == entity_id)
            .order_by(AuditLogModel.id.asc())
        )
        return [self._to_entity(e) for e in result.scalars().all()]
