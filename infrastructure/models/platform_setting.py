"""
平台配置数据库模型
"""
from sqlalchemy import Column, Integer, String, DateTime
from datetime import datetime, timezone

from .base import Base


class PlatformSettingModel(Base):
    __tablename__ = "platform_settings"

    key = Column(String(100), primary_key=True, comment="配置键")
    value = Column(String(500), nullable=False, comment="配置值")
    updated_by = Column(Integer, nullable=True, comment="最后修改人")
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="更新时间"
    )

    def __repr__(self):
        return f"<PlatformSettingModel(key='{self.key}', value='{self.value}')>"
