"""
项目仓储实现
"""
from typing import Optional
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update

from domain.common.exceptions import ProjectNotFoundException
from domain.project.entity import Project, ProjectStatus
from domain.project.repository import ProjectRepository
from infrastructure.models.project import ProjectModel
from core.logging_config import get_logger


logger = get_logger(__name__)


class SQLAlchemyProjectRepository(ProjectRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: ProjectModel) -> Project:
        return Project(
            id=model.id,
            seller_id=model.seller_id,
            title=model.title,
            price=Decimal(str(model.price)),
            status=ProjectStatus(model.status),
            sales_count=model.sales_count,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    async def create(self, project: Project) -> Project:
        db_project = ProjectModel(
            id=project.id,
            seller_id=project.seller_id,
            title=project.title,
            price=project.price,
            status=project.status.value,
            sales_count=project.sales_count,
        )
        self.session.add(db_project)
        await self.session.flush()
        await self.session.refresh(db_project)
        return self._to_entity(db_project)

    async def get_by_id(self, project_id: int) -> Optional[Project]:
        result = await self.session.execute(
            select(ProjectModel).where(ProjectModel.id == project_id)
        )
        db_project = result.scalar_one_or_none()
        return self._to_entity(db_project) if db_project else None

    async def increment_sales(self, project_id: int) -> None:
        result = await self.session.execute(
            update(ProjectModel)
            .where(ProjectModel.id == project_id)
            .values(sales_count=ProjectModel.sales_count + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise ProjectNotFoundException(project_id)
        logger.info("project_sales_incremented", project_id=project_id)
