"""
项目数据库模型
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Index
from datetime import datetime, timezone

from .base import Base


class ProjectModel(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    seller_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True, comment="卖家ID")
    title = Column(String(200), nullable=False, comment="标题")
    price = Column(Numeric(precision=15, scale=2), nullable=False, comment="售价")
    status = Column(String(20), nullable=False, default="DRAFT", comment="状态: DRAFT/PENDING/APPROVED/REJECTED")
    sales_count = Column(Integer, nullable=False, default=0, comment="销量")

    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="创建时间"
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="更新时间"
    )

    __table_args__ = (
        Index("ix_projects_seller_status", "seller_id", "status"),
    )

    def __repr__(self):
        return f"<ProjectModel(id={self.id}, title='{self.title}', status='{self.status}')>"
