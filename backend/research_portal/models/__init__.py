# Re-export all models for convenient imports
from research_portal.models.field_pool import (
    FieldPool,
    FieldPoolStatus,
    Domain,
    FieldPoolDomain,
    LecturerSelection,
    LecturerSelectionStatus,
    StudentSelection,
)
from research_portal.models.project import Project, ProjectStatus
from research_portal.models.evaluation import (
    ProjectEvaluation,
    EvaluationScore,
    EvaluationStatus,
    EvaluatorRole,
)

__all__ = [
    # Field pools
    "FieldPool",
    "FieldPoolStatus",
    "Domain",
    "FieldPoolDomain",
    "LecturerSelection",
    "LecturerSelectionStatus",
    "StudentSelection",
    # Projects
    "Project",
    "ProjectStatus",
    # Evaluation
    "ProjectEvaluation",
    "EvaluationScore",
    "EvaluationStatus",
    "EvaluatorRole",
]
