"""
Field Pool API

- CRUD and filtered listing
- Registration deadline updates with automatic OPEN/CLOSED reconciliation
- Domain links
"""
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional, List
from datetime import datetime

from research_portal.core.database import get_db
from research_portal.core.rate_limiter import write_rate_limit
from research_portal.schemas.common import ApiResponse
from research_portal.schemas.field_pool import (
    AddDomainRequest,
    DomainCreate,
    DomainResponse,
    ExtendDeadlineRequest,
    FieldPoolCounts,
    FieldPoolCreate,
    FieldPoolDetailResponse,
    FieldPoolResponse,
    FieldPoolUpdate,
    LecturerSelectionResponse,
)
from research_portal.services.field_pool_service import get_field_pool_service

router = APIRouter(prefix="/field-pools", tags=["Field Pools"])
domains_router = APIRouter(prefix="/domains", tags=["Field Pools"])


def _detail(field_pool, counts: dict) -> FieldPoolDetailResponse:
    detail = FieldPoolDetailResponse.model_validate(field_pool)
    detail.counts = FieldPoolCounts(**counts)
    return detail


@router.post("", response_model=ApiResponse[FieldPoolResponse], status_code=status.HTTP_201_CREATED)
async def create_field_pool(payload: FieldPoolCreate, db: AsyncSession = Depends(get_db)):
    result = await get_field_pool_service(db).create(payload.model_dump())
    return ApiResponse[FieldPoolResponse](
        message=result["message"],
        data=FieldPoolResponse.model_validate(result["data"]),
    )


@router.get("", response_model=ApiResponse[List[FieldPoolResponse]])
async def find_field_pools(
    name: Optional[str] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
    domain_id: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    order_by: str = "created_at",
    asc: bool = False,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    result = await get_field_pool_service(db).find(
        name=name,
        status=status,
        search=search,
        domain_id=domain_id,
        start_date=start_date,
        end_date=end_date,
        order_by=order_by,
        asc=asc,
        page=page,
        limit=limit,
    )
    return ApiResponse[List[FieldPoolResponse]](
        message=result["message"],
        data=[FieldPoolResponse.model_validate(fp) for fp in result["data"]],
        pagination=result["pagination"],
    )


@router.get("/all", response_model=ApiResponse[List[FieldPoolResponse]])
async def list_all_field_pools(db: AsyncSession = Depends(get_db)):
    result = await get_field_pool_service(db).list_all()
    return ApiResponse[List[FieldPoolResponse]](
        message=result["message"],
        data=[FieldPoolResponse.model_validate(fp) for fp in result["data"]],
    )


@router.get("/{field_pool_id}", response_model=ApiResponse[FieldPoolDetailResponse])
async def get_field_pool(field_pool_id: str, db: AsyncSession = Depends(get_db)):
    result = await get_field_pool_service(db).get(field_pool_id)
    return ApiResponse[FieldPoolDetailResponse](
        message=result["message"],
        data=_detail(result["data"], result["counts"]),
    )


@router.put("/{field_pool_id}", response_model=ApiResponse[FieldPoolResponse])
@write_rate_limit()
async def update_field_pool(
    request: Request,
    field_pool_id: str,
    payload: FieldPoolUpdate,
    db: AsyncSession = Depends(get_db),
):
    """
    Partially update a field pool.

    Sending `registration_deadline` reconciles the status: a future deadline
    reopens a CLOSED pool, a past one closes an OPEN pool. HIDDEN is kept.
    """
    result = await get_field_pool_service(db).update(field_pool_id, payload.model_dump(exclude_unset=True))
    return ApiResponse[FieldPoolResponse](
        message=result["message"],
        data=FieldPoolResponse.model_validate(result["data"]),
    )


@router.put("/{field_pool_id}/extend-deadline", response_model=ApiResponse[FieldPoolResponse])
@write_rate_limit()
async def extend_registration_deadline(
    request: Request,
    field_pool_id: str,
    payload: ExtendDeadlineRequest,
    db: AsyncSession = Depends(get_db),
):
    """Move the deadline into the future; a CLOSED pool is reopened"""
    result = await get_field_pool_service(db).extend_deadline(
        field_pool_id, payload.new_deadline, reason=payload.reason
    )
    return ApiResponse[FieldPoolResponse](
        message=result["message"],
        data=FieldPoolResponse.model_validate(result["data"]),
    )


@router.delete("/{field_pool_id}", response_model=ApiResponse[None])
async def delete_field_pool(field_pool_id: str, db: AsyncSession = Depends(get_db)):
    result = await get_field_pool_service(db).delete(field_pool_id)
    return ApiResponse[None](message=result["message"])


# ==================== Domains ====================

@router.get("/{field_pool_id}/domains", response_model=ApiResponse[List[DomainResponse]])
async def get_field_pool_domains(field_pool_id: str, db: AsyncSession = Depends(get_db)):
    result = await get_field_pool_service(db).get_domains(field_pool_id)
    return ApiResponse[List[DomainResponse]](
        message=result["message"],
        data=[DomainResponse.model_validate(d) for d in result["data"]],
    )


@router.post(
    "/{field_pool_id}/domains",
    response_model=ApiResponse[DomainResponse],
    status_code=status.HTTP_201_CREATED,
)
async def add_field_pool_domain(
    field_pool_id: str,
    payload: AddDomainRequest,
    db: AsyncSession = Depends(get_db),
):
    result = await get_field_pool_service(db).add_domain(field_pool_id, payload.domain_id)
    return ApiResponse[DomainResponse](
        message=result["message"],
        data=DomainResponse.model_validate(result["data"]),
    )


@router.delete("/{field_pool_id}/domains/{domain_id}", response_model=ApiResponse[None])
async def remove_field_pool_domain(field_pool_id: str, domain_id: str, db: AsyncSession = Depends(get_db)):
    result = await get_field_pool_service(db).remove_domain(field_pool_id, domain_id)
    return ApiResponse[None](message=result["message"])


# ==================== Lecturers ====================

@router.get("/{field_pool_id}/lecturers", response_model=ApiResponse[List[LecturerSelectionResponse]])
async def get_field_pool_lecturers(field_pool_id: str, db: AsyncSession = Depends(get_db)):
    result = await get_field_pool_service(db).get_lecturers(field_pool_id)
    return ApiResponse[List[LecturerSelectionResponse]](
        message=result["message"],
        data=[LecturerSelectionResponse.model_validate(s) for s in result["data"]],
    )


@domains_router.post("", response_model=ApiResponse[DomainResponse], status_code=status.HTTP_201_CREATED)
async def create_domain(payload: DomainCreate, db: AsyncSession = Depends(get_db)):
    result = await get_field_pool_service(db).create_domain(payload.name, payload.description)
    return ApiResponse[DomainResponse](
        message=result["message"],
        data=DomainResponse.model_validate(result["data"]),
    )
