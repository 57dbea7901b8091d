from research_portal.schemas.common import ApiResponse, HealthResponse
from research_portal.schemas.field_pool import (
    FieldPoolCreate,
    FieldPoolUpdate,
    ExtendDeadlineRequest,
    DomainCreate,
    AddDomainRequest,
    DomainResponse,
    LecturerSelectionResponse,
    FieldPoolCounts,
    FieldPoolResponse,
    FieldPoolDetailResponse,
)
from research_portal.schemas.project import ProjectCreate, ProjectResponse
from research_portal.schemas.evaluation import (
    EvaluationCreate,
    ScoreCreate,
    ScoreUpdate,
    FinalizeRequest,
    EvaluationScoreResponse,
    ProjectEvaluationResponse,
    FinalizeResponse,
)

__all__ = [
    "ApiResponse",
    "HealthResponse",
    "FieldPoolCreate",
    "FieldPoolUpdate",
    "ExtendDeadlineRequest",
    "DomainCreate",
    "AddDomainRequest",
    "DomainResponse",
    "LecturerSelectionResponse",
    "FieldPoolCounts",
    "FieldPoolResponse",
    "FieldPoolDetailResponse",
    "ProjectCreate",
    "ProjectResponse",
    "EvaluationCreate",
    "ScoreCreate",
    "ScoreUpdate",
    "FinalizeRequest",
    "EvaluationScoreResponse",
    "ProjectEvaluationResponse",
    "FinalizeResponse",
]
