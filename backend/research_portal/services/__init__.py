from research_portal.services.field_pool_service import FieldPoolService, get_field_pool_service
from research_portal.services.evaluation_service import EvaluationService, get_evaluation_service
from research_portal.services.project_service import ProjectService, get_project_service

__all__ = [
    "FieldPoolService",
    "get_field_pool_service",
    "EvaluationService",
    "get_evaluation_service",
    "ProjectService",
    "get_project_service",
]
