from pydantic import BaseModel
from typing import Generic, Optional, TypeVar

from research_portal.utils.pagination import PaginationMeta

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Envelope for every successful response"""
    success: bool = True
    message: str
    data: Optional[T] = None
    pagination: Optional[PaginationMeta] = None


class HealthResponse(BaseModel):
    status: str
    service: Optional[str] = None
    version: Optional[str] = None
    database: Optional[str] = None
