from sqlalchemy import Column, String, DateTime, Text, ForeignKey, Enum as SQLEnum
import enum

from research_portal.core.database import Base
from research_portal.core.types import GUID, generate_uuid, utcnow


class ProjectStatus(str, enum.Enum):
    """Research project status"""
    IN_PROGRESS = "IN_PROGRESS"
    WAITING_FOR_EVALUATION = "WAITING_FOR_EVALUATION"


class Project(Base):
    """Undergraduate research project"""
    __tablename__ = "projects"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    field_pool_id = Column(GUID, ForeignKey("field_pools.id", ondelete="SET NULL"), nullable=True, index=True)
    status = Column(SQLEnum(ProjectStatus), default=ProjectStatus.IN_PROGRESS, nullable=False)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<Project {self.title}>"
