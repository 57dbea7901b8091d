"""
Custom Exceptions for the Research Portal
=========================================

Three families, each mapped to one HTTP status by the API layer:

1. NotFound (404)         - ResourceNotFoundError and subclasses
2. InvalidArgument (400)  - InvalidArgumentError and subclasses
3. Conflict (409)         - ConflictError and subclasses

Usage:
    from research_portal.core.exceptions import FieldPoolNotFoundError

    if not field_pool:
        raise FieldPoolNotFoundError(field_pool_id)
"""

import math
from typing import Optional, Any, Dict


class PortalError(Exception):
    """Base exception for all Research Portal errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Resource Errors (404-type)
# ============================================

class ResourceNotFoundError(PortalError):
    """Base class for not found errors"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with ID '{resource_id}' not found",
            code=f"{resource_type.upper().replace(' ', '_')}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


class FieldPoolNotFoundError(ResourceNotFoundError):
    """Field pool not found"""

    def __init__(self, field_pool_id: str):
        super().__init__("Field pool", field_pool_id)


class DomainNotFoundError(ResourceNotFoundError):
    """Domain not found"""

    def __init__(self, domain_id: str):
        super().__init__("Domain", domain_id)


class ProjectNotFoundError(ResourceNotFoundError):
    """Project not found"""

    def __init__(self, project_id: str):
        super().__init__("Project", project_id)


class EvaluationNotFoundError(ResourceNotFoundError):
    """Project evaluation not found"""

    def __init__(self, evaluation_id: str):
        super().__init__("Evaluation", evaluation_id)


class EvaluationScoreNotFoundError(ResourceNotFoundError):
    """Evaluation score not found"""

    def __init__(self, score_id: str):
        super().__init__("Evaluation score", score_id)


# ============================================
# Validation Errors (400-type)
# ============================================

def _json_safe(value: Any) -> Any:
    """inf and nan have no JSON form; report them as text"""
    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    return value


class InvalidArgumentError(PortalError):
    """Input rejected before any state was read or written"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="INVALID_ARGUMENT", details=details)


class InvalidDeadlineError(InvalidArgumentError):
    """Registration deadline is not acceptable for the requested operation"""

    def __init__(self, message: str = "New deadline must be later than the current time"):
        super().__init__(message, field="new_deadline")
        self.code = "INVALID_DEADLINE"


class InvalidWeightsError(InvalidArgumentError):
    """Advisor/committee weights out of range or not summing to 1"""

    def __init__(self, message: str, advisor_weight: float, committee_weight: float):
        super().__init__(message)
        self.code = "INVALID_WEIGHTS"
        self.details = {
            "advisor_weight": _json_safe(advisor_weight),
            "committee_weight": _json_safe(committee_weight),
        }


class InvalidScoreError(InvalidArgumentError):
    """Score outside the grading scale"""

    def __init__(self, score: float, minimum: float, maximum: float):
        super().__init__(f"Score {score} is outside the range [{minimum}, {maximum}]", field="score")
        self.code = "INVALID_SCORE"
        self.details["score"] = _json_safe(score)


# ============================================
# Conflict Errors (409-type)
# ============================================

class ConflictError(PortalError):
    """Request conflicts with the current state of the resource"""

    status_code = 409

    def __init__(self, message: str, code: str = "CONFLICT", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code=code, details=details)


class ConcurrentUpdateError(ConflictError):
    """Row was modified by another transaction between read and write"""

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} '{resource_id}' was modified concurrently, please retry",
            code="CONCURRENT_UPDATE",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


class EvaluationLockedError(ConflictError):
    """Scores of a finalized evaluation can no longer change"""

    def __init__(self, evaluation_id: str):
        super().__init__(
            f"Evaluation '{evaluation_id}' has already been finalized",
            code="EVALUATION_LOCKED",
            details={"evaluation_id": evaluation_id}
        )


class DuplicateEvaluationError(ConflictError):
    """A project can only have one evaluation"""

    def __init__(self, project_id: str):
        super().__init__(
            f"Evaluation for project '{project_id}' already exists",
            code="DUPLICATE_EVALUATION",
            details={"project_id": project_id}
        )


class DuplicateScoreError(ConflictError):
    """An evaluator can only score an evaluation once"""

    def __init__(self, evaluation_id: str, evaluator_id: str):
        super().__init__(
            "Evaluator has already scored this evaluation, update the existing score instead",
            code="DUPLICATE_SCORE",
            details={"evaluation_id": evaluation_id, "evaluator_id": evaluator_id}
        )


class DuplicateDomainError(ConflictError):
    """Domain already linked to the field pool, or domain name already taken"""

    def __init__(self, message: str, **details: Any):
        super().__init__(message, code="DUPLICATE_DOMAIN", details=details)


# ============================================
# Helper function for API responses
# ============================================

def error_response(error: PortalError) -> Dict[str, Any]:
    """Convert exception to API error response format"""
    return {
        "success": False,
        "error": error.to_dict()
    }
