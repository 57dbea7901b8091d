from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from research_portal.core.database import get_db
from research_portal.schemas.common import ApiResponse
from research_portal.schemas.project import ProjectCreate, ProjectResponse
from research_portal.services.project_service import get_project_service

router = APIRouter(prefix="/projects", tags=["Projects"])


@router.post("", response_model=ApiResponse[ProjectResponse], status_code=status.HTTP_201_CREATED)
async def create_project(payload: ProjectCreate, db: AsyncSession = Depends(get_db)):
    result = await get_project_service(db).create(
        payload.title, description=payload.description, field_pool_id=payload.field_pool_id
    )
    return ApiResponse[ProjectResponse](
        message=result["message"],
        data=ProjectResponse.model_validate(result["data"]),
    )


@router.get("/{project_id}", response_model=ApiResponse[ProjectResponse])
async def get_project(project_id: str, db: AsyncSession = Depends(get_db)):
    result = await get_project_service(db).get(project_id)
    return ApiResponse[ProjectResponse](
        message=result["message"],
        data=ProjectResponse.model_validate(result["data"]),
    )
