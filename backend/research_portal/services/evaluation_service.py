"""
Evaluation Service Layer

Scores are collected per evaluator and finalized into one weighted score:

    final_score = avg(ADVISOR) * advisor_weight + avg(COMMITTEE) * committee_weight

An empty role contributes an average of 0. The final score is stored at full
precision; format_score() rounds for display only.
"""

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError

from research_portal.core.config import settings
from research_portal.core.exceptions import (
    ConcurrentUpdateError,
    DuplicateEvaluationError,
    DuplicateScoreError,
    EvaluationLockedError,
    EvaluationNotFoundError,
    EvaluationScoreNotFoundError,
    InvalidArgumentError,
    InvalidScoreError,
    InvalidWeightsError,
    ProjectNotFoundError,
)
from research_portal.core.logging_config import logger
from research_portal.core.types import utcnow
from research_portal.models.evaluation import (
    EvaluationScore,
    EvaluationStatus,
    EvaluatorRole,
    ProjectEvaluation,
)
from research_portal.models.project import Project, ProjectStatus
from research_portal.utils.pagination import paginate


@dataclass(frozen=True)
class ScoreBreakdown:
    advisor_average: float
    committee_average: float
    final_score: float


def average(values: Iterable[float]) -> float:
    values = list(values)
    if not values:
        return 0.0
    return sum(values) / len(values)


def validate_weights(advisor_weight: Any, committee_weight: Any, tolerance: Optional[float] = None) -> None:
    """Raise InvalidWeightsError unless both weights are in [0, 1] and sum to 1"""
    if tolerance is None:
        tolerance = settings.WEIGHT_SUM_TOLERANCE

    for name, weight in (("advisor_weight", advisor_weight), ("committee_weight", committee_weight)):
        if weight is None or isinstance(weight, bool) or not isinstance(weight, (int, float)):
            raise InvalidWeightsError(f"{name} must be a number", advisor_weight, committee_weight)
        if not math.isfinite(weight) or weight < 0 or weight > 1:
            raise InvalidWeightsError(f"{name} must be between 0 and 1", advisor_weight, committee_weight)

    if abs((advisor_weight + committee_weight) - 1) > tolerance:
        raise InvalidWeightsError(
            f"Weights must sum to 1 (got {advisor_weight + committee_weight:g})",
            advisor_weight, committee_weight,
        )


def compute_final_score(
    advisor_scores: Iterable[float],
    committee_scores: Iterable[float],
    advisor_weight: float,
    committee_weight: float,
) -> ScoreBreakdown:
    advisor_avg = average(advisor_scores)
    committee_avg = average(committee_scores)
    return ScoreBreakdown(
        advisor_average=advisor_avg,
        committee_average=committee_avg,
        final_score=advisor_avg * advisor_weight + committee_avg * committee_weight,
    )


def format_score(value: Optional[float]) -> Optional[str]:
    """Two-decimal display form; None stays None"""
    if value is None:
        return None
    return f"{value:.2f}"


def validate_score(score: Any) -> float:
    if score is None or isinstance(score, bool) or not isinstance(score, (int, float)) or not math.isfinite(score):
        raise InvalidScoreError(score, settings.SCORE_MIN, settings.SCORE_MAX)
    if score < settings.SCORE_MIN or score > settings.SCORE_MAX:
        raise InvalidScoreError(score, settings.SCORE_MIN, settings.SCORE_MAX)
    return float(score)


def coerce_role(value: Any) -> EvaluatorRole:
    if isinstance(value, EvaluatorRole):
        return value
    try:
        return EvaluatorRole(str(value).upper())
    except ValueError:
        raise InvalidArgumentError(
            f"Invalid evaluator role '{value}'. Allowed: ADVISOR, COMMITTEE", field="role"
        )


class EvaluationService:
    """Service for project evaluations and their scores"""

    def __init__(self, db: AsyncSession, clock: Callable[[], datetime] = utcnow):
        self.db = db
        self.clock = clock

    async def _load(self, evaluation_id: str, for_update: bool = False) -> ProjectEvaluation:
        query = select(ProjectEvaluation).where(ProjectEvaluation.id == evaluation_id)
        if for_update:
            query = query.with_for_update(of=ProjectEvaluation)
        result = await self.db.execute(query)
        evaluation = result.unique().scalar_one_or_none()
        if not evaluation:
            raise EvaluationNotFoundError(evaluation_id)
        return evaluation

    async def _load_score(self, score_id: str) -> EvaluationScore:
        result = await self.db.execute(
            select(EvaluationScore)
            .options(selectinload(EvaluationScore.evaluation))
            .where(EvaluationScore.id == score_id)
        )
        score = result.scalar_one_or_none()
        if not score:
            raise EvaluationScoreNotFoundError(score_id)
        return score

    async def _commit(self, evaluation_id: str) -> None:
        try:
            await self.db.commit()
        except StaleDataError:
            await self.db.rollback()
            logger.warning(f"[Evaluation] Concurrent update detected on {evaluation_id}")
            raise ConcurrentUpdateError("Evaluation", evaluation_id)

    # =====================================================
    # EVALUATIONS
    # =====================================================

    async def create_evaluation(self, project_id: str) -> Dict[str, Any]:
        project = await self.db.get(Project, project_id)
        if not project:
            raise ProjectNotFoundError(project_id)

        existing = await self.db.execute(
            select(ProjectEvaluation.id).where(ProjectEvaluation.project_id == project_id)
        )
        if existing.scalar_one_or_none():
            raise DuplicateEvaluationError(project_id)

        evaluation = ProjectEvaluation(project=project, status=EvaluationStatus.PENDING, scores=[])
        self.db.add(evaluation)
        project.status = ProjectStatus.WAITING_FOR_EVALUATION

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateEvaluationError(project_id)

        logger.info(f"[Evaluation] Created {evaluation.id} for project {project_id}")
        return {"message": "Evaluation created successfully", "data": evaluation}

    async def get_evaluation(self, evaluation_id: str) -> Dict[str, Any]:
        evaluation = await self._load(evaluation_id)
        return {"message": "Evaluation retrieved successfully", "data": evaluation}

    async def find_evaluations(
        self,
        status: Optional[Any] = None,
        project_id: Optional[str] = None,
        keyword: Optional[str] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> Dict[str, Any]:
        query = select(ProjectEvaluation)

        if status:
            try:
                status = EvaluationStatus(str(status).upper())
            except ValueError:
                raise InvalidArgumentError(f"Invalid evaluation status '{status}'", field="status")
            query = query.where(ProjectEvaluation.status == status)
        if project_id:
            query = query.where(ProjectEvaluation.project_id == project_id)
        if keyword:
            query = query.where(
                ProjectEvaluation.project_id.in_(
                    select(Project.id).where(Project.title.ilike(f"%{keyword}%"))
                )
            )

        query = query.order_by(ProjectEvaluation.created_at.desc(), ProjectEvaluation.id)
        result = await paginate(self.db, query, page=page, limit=limit)

        return {
            "message": "Evaluations retrieved successfully",
            "data": result["items"],
            "pagination": result["pagination"],
        }

    async def finalize(
        self,
        evaluation_id: str,
        advisor_weight: float,
        committee_weight: float,
    ) -> Dict[str, Any]:
        """
        Compute and store the weighted final score.

        Weights are validated before anything is loaded. Finalizing an
        already EVALUATED evaluation recomputes with the given weights.
        The owning project is left untouched.
        """
        validate_weights(advisor_weight, committee_weight)

        evaluation = await self._load(evaluation_id, for_update=True)
        breakdown = compute_final_score(
            evaluation.scores_for(EvaluatorRole.ADVISOR),
            evaluation.scores_for(EvaluatorRole.COMMITTEE),
            advisor_weight,
            committee_weight,
        )

        previous_status = evaluation.status
        evaluation.advisor_weight = float(advisor_weight)
        evaluation.committee_weight = float(committee_weight)
        evaluation.final_score = breakdown.final_score
        evaluation.status = EvaluationStatus.EVALUATED

        await self._commit(evaluation_id)

        if previous_status != EvaluationStatus.EVALUATED:
            logger.log_status_transition(
                "Evaluation", evaluation_id, previous_status.value, EvaluationStatus.EVALUATED.value,
                "finalized", final_score=breakdown.final_score,
            )
        else:
            logger.info(f"[Evaluation] Re-finalized {evaluation_id}: final_score={breakdown.final_score}")

        return {
            "message": f"Evaluation finalized successfully. Final score: {format_score(breakdown.final_score)}",
            "data": evaluation,
            "advisor_average": breakdown.advisor_average,
            "committee_average": breakdown.committee_average,
        }

    # =====================================================
    # SCORES
    # =====================================================

    async def add_score(
        self,
        evaluation_id: str,
        evaluator_id: str,
        role: Any,
        score: Any,
        comment: Optional[str] = None,
    ) -> Dict[str, Any]:
        role = coerce_role(role)
        score = validate_score(score)
        if not evaluator_id:
            raise InvalidArgumentError("evaluator_id is required", field="evaluator_id")

        evaluation = await self._load(evaluation_id, for_update=True)
        if evaluation.is_finalized:
            raise EvaluationLockedError(evaluation_id)
        if any(s.evaluator_id == evaluator_id for s in evaluation.scores):
            raise DuplicateScoreError(evaluation_id, evaluator_id)

        entry = EvaluationScore(evaluator_id=evaluator_id, role=role, score=score, comment=comment)
        evaluation.scores.append(entry)

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateScoreError(evaluation_id, evaluator_id)

        return {"message": "Score added successfully", "data": entry}

    async def update_score(
        self,
        score_id: str,
        score: Optional[Any] = None,
        comment: Optional[str] = None,
    ) -> Dict[str, Any]:
        if score is not None:
            score = validate_score(score)

        entry = await self._load_score(score_id)
        if entry.evaluation.is_finalized:
            raise EvaluationLockedError(entry.evaluation_id)

        if score is not None:
            entry.score = score
        if comment is not None:
            entry.comment = comment
        await self.db.commit()

        return {"message": "Score updated successfully", "data": entry}

    async def delete_score(self, score_id: str) -> Dict[str, Any]:
        entry = await self._load_score(score_id)
        evaluation = entry.evaluation
        if evaluation.is_finalized:
            raise EvaluationLockedError(evaluation.id)

        evaluation.scores.remove(entry)
        await self.db.commit()

        return {"message": "Score deleted successfully", "data": None}

    async def list_scores(self, evaluation_id: str, role: Optional[Any] = None) -> Dict[str, Any]:
        evaluation = await self._load(evaluation_id)
        scores = list(evaluation.scores)
        if role:
            role = coerce_role(role)
            scores = [s for s in scores if s.role == role]
        return {"message": "Scores retrieved successfully", "data": scores}


# Factory function
def get_evaluation_service(db: AsyncSession) -> EvaluationService:
    return EvaluationService(db)
