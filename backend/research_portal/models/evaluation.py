"""
Project Evaluation Models

- ProjectEvaluation: one per project, finalized into a weighted final score
- EvaluationScore: one 0-10 score per evaluator, tagged ADVISOR or COMMITTEE
"""
from sqlalchemy import Column, String, Integer, Float, Text, DateTime, ForeignKey, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum

from research_portal.core.database import Base
from research_portal.core.types import GUID, generate_uuid, utcnow


class EvaluationStatus(str, enum.Enum):
    """Status of a project evaluation"""
    PENDING = "PENDING"
    EVALUATED = "EVALUATED"


class EvaluatorRole(str, enum.Enum):
    """Capacity in which a score was given"""
    ADVISOR = "ADVISOR"
    COMMITTEE = "COMMITTEE"


class ProjectEvaluation(Base):
    """Final evaluation of a research project"""
    __tablename__ = "project_evaluations"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    project_id = Column(GUID, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, unique=True)

    status = Column(SQLEnum(EvaluationStatus), default=EvaluationStatus.PENDING, nullable=False)

    # Weights chosen at finalize time, each in [0, 1], summing to 1
    advisor_weight = Column(Float, nullable=True)
    committee_weight = Column(Float, nullable=True)

    # Full precision; rounded only for display
    final_score = Column(Float, nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    version = Column(Integer, nullable=False, default=1)

    # Relationships
    project = relationship("Project", lazy="joined", innerjoin=True)
    scores = relationship(
        "EvaluationScore",
        back_populates="evaluation",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="EvaluationScore.created_at",
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<ProjectEvaluation {self.id} for project {self.project_id}>"

    @property
    def is_finalized(self) -> bool:
        return self.status == EvaluationStatus.EVALUATED

    def scores_for(self, role: EvaluatorRole) -> list:
        """Scores given in one role"""
        return [s.score for s in self.scores if s.role == role]


class EvaluationScore(Base):
    """Individual score given by an advisor or a committee member"""
    __tablename__ = "evaluation_scores"

    __table_args__ = (
        UniqueConstraint('evaluation_id', 'evaluator_id', name='uq_evaluation_scores_evaluator'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    evaluation_id = Column(GUID, ForeignKey("project_evaluations.id", ondelete="CASCADE"), nullable=False, index=True)
    evaluator_id = Column(String(64), nullable=False)
    role = Column(SQLEnum(EvaluatorRole), nullable=False)

    score = Column(Float, nullable=False)
    comment = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    evaluation = relationship("ProjectEvaluation", back_populates="scores")

    def __repr__(self):
        return f"<EvaluationScore {self.role.value if self.role else None} {self.score}>"
