"""
审计日志数据库模型
"""
from sqlalchemy import Column, Integer, String, DateTime, JSON, Index
from datetime import datetime, timezone

from .base import Base


class AuditLogModel(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    actor_id = Column(Integer, nullable=True, index=True, comment="操作人")
    action = Column(String(50), nullable=False, comment="操作类型")
    entity_type = Column(String(50), nullable=False, comment="实体类型")
    entity_id = Column(String(50), nullable=False, comment="实体ID")
    changes = Column(JSON, nullable=True, comment="变更内容")
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="创建时间"
    )

    __table_args__ = (
        Index("ix_audit_logs_entity", "entity_type", "entity_id"),
    )
