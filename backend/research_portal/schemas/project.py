from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime

from research_portal.models.project import ProjectStatus


class ProjectCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    field_pool_id: Optional[str] = None


class ProjectResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    field_pool_id: Optional[str] = None
    status: ProjectStatus
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
