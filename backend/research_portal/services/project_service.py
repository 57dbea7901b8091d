"""Minimal project service: projects own evaluations and are counted per field pool"""
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from research_portal.core.exceptions import FieldPoolNotFoundError, InvalidArgumentError, ProjectNotFoundError
from research_portal.core.logging_config import logger
from research_portal.models.field_pool import FieldPool
from research_portal.models.project import Project, ProjectStatus


class ProjectService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        title: str,
        description: Optional[str] = None,
        field_pool_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        title = (title or "").strip()
        if not title:
            raise InvalidArgumentError("Project title is required", field="title")

        if field_pool_id and not await self.db.get(FieldPool, field_pool_id):
            raise FieldPoolNotFoundError(field_pool_id)

        project = Project(
            title=title,
            description=description,
            field_pool_id=field_pool_id,
            status=ProjectStatus.IN_PROGRESS,
        )
        self.db.add(project)
        await self.db.commit()

        logger.info(f"[Project] Created {project.id} '{project.title}'")
        return {"message": "Project created successfully", "data": project}

    async def get(self, project_id: str) -> Dict[str, Any]:
        project = await self.db.get(Project, project_id)
        if not project:
            raise ProjectNotFoundError(project_id)
        return {"message": "Project retrieved successfully", "data": project}


def get_project_service(db: AsyncSession) -> ProjectService:
    return ProjectService(db)
