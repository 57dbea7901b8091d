from pydantic import BaseModel, Field, ConfigDict, computed_field
from typing import Optional, List
from datetime import datetime

from research_portal.models.evaluation import EvaluationStatus, EvaluatorRole
from research_portal.schemas.project import ProjectResponse
from research_portal.services.evaluation_service import format_score


class EvaluationCreate(BaseModel):
    project_id: str


class ScoreCreate(BaseModel):
    evaluator_id: str = Field(..., min_length=1, max_length=64)
    role: str
    # Range is checked by the service (INVALID_SCORE), not here
    score: float
    comment: Optional[str] = None


class ScoreUpdate(BaseModel):
    score: Optional[float] = None
    comment: Optional[str] = None


class FinalizeRequest(BaseModel):
    advisor_weight: float
    committee_weight: float


class EvaluationScoreResponse(BaseModel):
    id: str
    evaluation_id: str
    evaluator_id: str
    role: EvaluatorRole
    score: float
    comment: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ProjectEvaluationResponse(BaseModel):
    id: str
    project_id: str
    status: EvaluationStatus
    advisor_weight: Optional[float] = None
    committee_weight: Optional[float] = None
    final_score: Optional[float] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    version: int
    project: Optional[ProjectResponse] = None
    scores: List[EvaluationScoreResponse] = []

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def display_score(self) -> Optional[str]:
        """final_score rounded to two decimals"""
        return format_score(self.final_score)


class FinalizeResponse(ProjectEvaluationResponse):
    advisor_average: float
    committee_average: float
