from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime

from research_portal.models.field_pool import FieldPoolStatus, LecturerSelectionStatus


class FieldPoolCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    description: Optional[str] = Field(None, max_length=500)
    long_description: Optional[str] = None
    registration_deadline: Optional[datetime] = None
    status: Optional[str] = None


class FieldPoolUpdate(BaseModel):
    """Partial update; only fields present in the request body are applied"""
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=500)
    long_description: Optional[str] = None
    registration_deadline: Optional[datetime] = None
    # Validated by the service so a bad value maps to INVALID_ARGUMENT
    status: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class ExtendDeadlineRequest(BaseModel):
    new_deadline: datetime
    reason: Optional[str] = Field(None, max_length=1000)


class DomainCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None


class AddDomainRequest(BaseModel):
    domain_id: str


class DomainResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class LecturerSelectionResponse(BaseModel):
    id: str
    field_pool_id: str
    lecturer_id: str
    capacity: int = 0
    current_capacity: int = 0
    status: LecturerSelectionStatus
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class FieldPoolCounts(BaseModel):
    lecturer_selections: int = 0
    student_selections: int = 0
    projects: int = 0
    domains: int = 0


class FieldPoolResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    long_description: Optional[str] = None
    status: FieldPoolStatus
    registration_deadline: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    version: int

    model_config = ConfigDict(from_attributes=True)


class FieldPoolDetailResponse(FieldPoolResponse):
    domains: List[DomainResponse] = []
    counts: FieldPoolCounts = FieldPoolCounts()
