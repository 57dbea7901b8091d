"""
Project Evaluation API

- Evaluation records (one per project)
- Advisor/committee scores
- Finalization into a weighted final score
"""
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional, List

from research_portal.core.database import get_db
from research_portal.core.rate_limiter import write_rate_limit
from research_portal.schemas.common import ApiResponse
from research_portal.schemas.evaluation import (
    EvaluationCreate,
    EvaluationScoreResponse,
    FinalizeRequest,
    FinalizeResponse,
    ProjectEvaluationResponse,
    ScoreCreate,
    ScoreUpdate,
)
from research_portal.services.evaluation_service import get_evaluation_service

router = APIRouter(prefix="/evaluations", tags=["Evaluations"])


@router.post("", response_model=ApiResponse[ProjectEvaluationResponse], status_code=status.HTTP_201_CREATED)
async def create_evaluation(payload: EvaluationCreate, db: AsyncSession = Depends(get_db)):
    result = await get_evaluation_service(db).create_evaluation(payload.project_id)
    return ApiResponse[ProjectEvaluationResponse](
        message=result["message"],
        data=ProjectEvaluationResponse.model_validate(result["data"]),
    )


@router.get("", response_model=ApiResponse[List[ProjectEvaluationResponse]])
async def find_evaluations(
    status: Optional[str] = None,
    project_id: Optional[str] = None,
    keyword: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    result = await get_evaluation_service(db).find_evaluations(
        status=status, project_id=project_id, keyword=keyword, page=page, limit=limit
    )
    return ApiResponse[List[ProjectEvaluationResponse]](
        message=result["message"],
        data=[ProjectEvaluationResponse.model_validate(e) for e in result["data"]],
        pagination=result["pagination"],
    )


# Registered before /{evaluation_id} routes so "scores" is not taken as an id
@router.put("/scores/{score_id}", response_model=ApiResponse[EvaluationScoreResponse])
async def update_score(score_id: str, payload: ScoreUpdate, db: AsyncSession = Depends(get_db)):
    result = await get_evaluation_service(db).update_score(
        score_id, score=payload.score, comment=payload.comment
    )
    return ApiResponse[EvaluationScoreResponse](
        message=result["message"],
        data=EvaluationScoreResponse.model_validate(result["data"]),
    )


@router.delete("/scores/{score_id}", response_model=ApiResponse[None])
async def delete_score(score_id: str, db: AsyncSession = Depends(get_db)):
    result = await get_evaluation_service(db).delete_score(score_id)
    return ApiResponse[None](message=result["message"])


@router.get("/{evaluation_id}", response_model=ApiResponse[ProjectEvaluationResponse])
async def get_evaluation(evaluation_id: str, db: AsyncSession = Depends(get_db)):
    result = await get_evaluation_service(db).get_evaluation(evaluation_id)
    return ApiResponse[ProjectEvaluationResponse](
        message=result["message"],
        data=ProjectEvaluationResponse.model_validate(result["data"]),
    )


@router.put("/{evaluation_id}/finalize", response_model=ApiResponse[FinalizeResponse])
@write_rate_limit()
async def finalize_evaluation(
    request: Request,
    evaluation_id: str,
    payload: FinalizeRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Finalize an evaluation.

    final_score = avg(ADVISOR) * advisor_weight + avg(COMMITTEE) * committee_weight.
    Weights must each be in [0, 1] and sum to 1.
    """
    result = await get_evaluation_service(db).finalize(
        evaluation_id, payload.advisor_weight, payload.committee_weight
    )
    base = ProjectEvaluationResponse.model_validate(result["data"]).model_dump(exclude={"display_score"})
    return ApiResponse[FinalizeResponse](
        message=result["message"],
        data=FinalizeResponse(
            **base,
            advisor_average=result["advisor_average"],
            committee_average=result["committee_average"],
        ),
    )


@router.get("/{evaluation_id}/scores", response_model=ApiResponse[List[EvaluationScoreResponse]])
async def list_scores(evaluation_id: str, role: Optional[str] = None, db: AsyncSession = Depends(get_db)):
    result = await get_evaluation_service(db).list_scores(evaluation_id, role=role)
    return ApiResponse[List[EvaluationScoreResponse]](
        message=result["message"],
        data=[EvaluationScoreResponse.model_validate(s) for s in result["data"]],
    )


@router.post(
    "/{evaluation_id}/scores",
    response_model=ApiResponse[EvaluationScoreResponse],
    status_code=status.HTTP_201_CREATED,
)
async def add_score(evaluation_id: str, payload: ScoreCreate, db: AsyncSession = Depends(get_db)):
    result = await get_evaluation_service(db).add_score(
        evaluation_id,
        evaluator_id=payload.evaluator_id,
        role=payload.role,
        score=payload.score,
        comment=payload.comment,
    )
    return ApiResponse[EvaluationScoreResponse](
        message=result["message"],
        data=EvaluationScoreResponse.model_validate(result["data"]),
    )
