"""
Field Pool Models

A field pool is a research field that lecturers and students register into
before a registration deadline. Its status is reconciled against that deadline
whenever the deadline is written (see services/field_pool_service.py).
"""
from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey, Index, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum

from research_portal.core.database import Base
from research_portal.core.types import GUID, generate_uuid, utcnow


class FieldPoolStatus(str, enum.Enum):
    """Registration status of a field pool"""
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    HIDDEN = "HIDDEN"  # manual-only, never entered or left automatically


class LecturerSelectionStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class FieldPool(Base):
    """Research field open for lecturer/student registration"""
    __tablename__ = "field_pools"

    __table_args__ = (
        Index('ix_field_pools_status', 'status'),
        Index('ix_field_pools_registration_deadline', 'registration_deadline'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    description = Column(String(500), nullable=True)
    long_description = Column(Text, nullable=True)

    status = Column(SQLEnum(FieldPoolStatus), default=FieldPoolStatus.OPEN, nullable=False)
    registration_deadline = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Optimistic lock: concurrent read-modify-write raises StaleDataError
    version = Column(Integer, nullable=False, default=1)

    # Relationships
    domain_links = relationship(
        "FieldPoolDomain",
        back_populates="field_pool",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<FieldPool {self.name} ({self.status.value if self.status else None})>"

    @property
    def domains(self) -> list:
        return sorted((link.domain for link in self.domain_links), key=lambda d: d.name)


class Domain(Base):
    """Research domain that can be attached to field pools"""
    __tablename__ = "domains"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    def __repr__(self):
        return f"<Domain {self.name}>"


class FieldPoolDomain(Base):
    """Link between a field pool and a domain"""
    __tablename__ = "field_pool_domains"

    field_pool_id = Column(GUID, ForeignKey("field_pools.id", ondelete="CASCADE"), primary_key=True)
    domain_id = Column(GUID, ForeignKey("domains.id", ondelete="CASCADE"), primary_key=True)
    created_at = Column(DateTime, default=utcnow)

    field_pool = relationship("FieldPool", back_populates="domain_links")
    domain = relationship("Domain", lazy="joined")


class LecturerSelection(Base):
    """A lecturer's registration to supervise projects in a field pool"""
    __tablename__ = "lecturer_selections"

    __table_args__ = (
        UniqueConstraint('field_pool_id', 'lecturer_id', name='uq_lecturer_selection_pool_lecturer'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    field_pool_id = Column(GUID, ForeignKey("field_pools.id", ondelete="CASCADE"), nullable=False, index=True)
    lecturer_id = Column(String(64), nullable=False)
    capacity = Column(Integer, default=0)
    current_capacity = Column(Integer, default=0)
    status = Column(SQLEnum(LecturerSelectionStatus), default=LecturerSelectionStatus.PENDING, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class StudentSelection(Base):
    """A student's registration into a field pool"""
    __tablename__ = "student_selections"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    field_pool_id = Column(GUID, ForeignKey("field_pools.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(String(64), nullable=False)
    priority = Column(Integer, default=1)
    created_at = Column(DateTime, default=utcnow)
