"""
Field Pool Service Layer

Owns the field pool lifecycle: CRUD, domain links, and the reconciliation of
`status` against `registration_deadline`.

Status is reconciled only when a deadline is written:
- update():          CLOSED -> OPEN if the new deadline is in the future,
                     OPEN -> CLOSED if it is not
- extend_deadline(): CLOSED -> OPEN only, never closes
HIDDEN is manual-only and is never entered or left automatically.
"""

from typing import Any, Callable, Dict, List, Optional
from datetime import datetime

from sqlalchemy import select, func, or_, delete, update as sql_update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from research_portal.core.config import settings
from research_portal.core.exceptions import (
    ConcurrentUpdateError,
    DomainNotFoundError,
    DuplicateDomainError,
    FieldPoolNotFoundError,
    InvalidArgumentError,
    InvalidDeadlineError,
    ResourceNotFoundError,
)
from research_portal.core.logging_config import logger
from research_portal.core.types import to_naive_utc, utcnow
from research_portal.models.field_pool import (
    Domain,
    FieldPool,
    FieldPoolDomain,
    FieldPoolStatus,
    LecturerSelection,
    StudentSelection,
)
from research_portal.models.project import Project
from research_portal.utils.pagination import paginate


UPDATABLE_FIELDS = ("name", "description", "long_description", "registration_deadline", "status")
ORDERABLE_FIELDS = {
    "created_at": FieldPool.created_at,
    "updated_at": FieldPool.updated_at,
    "name": FieldPool.name,
}


def derive_status_for_deadline(
    current: FieldPoolStatus,
    deadline: datetime,
    now: datetime,
    allow_close: bool = True,
) -> Optional[FieldPoolStatus]:
    """
    Status a field pool should move to when its deadline is set to `deadline`.

    Returns None when the current status stays. Only OPEN/CLOSED are ever
    produced; HIDDEN pools are left alone.
    """
    if deadline > now and current == FieldPoolStatus.CLOSED:
        return FieldPoolStatus.OPEN
    if allow_close and deadline <= now and current == FieldPoolStatus.OPEN:
        return FieldPoolStatus.CLOSED
    return None


def coerce_status(value: Any) -> FieldPoolStatus:
    if isinstance(value, FieldPoolStatus):
        return value
    try:
        return FieldPoolStatus(str(value).upper())
    except ValueError:
        raise InvalidArgumentError(
            f"Invalid field pool status '{value}'. Allowed: {', '.join(s.value for s in FieldPoolStatus)}",
            field="status",
        )


class FieldPoolService:
    """Service for field pool operations"""

    def __init__(self, db: AsyncSession, clock: Callable[[], datetime] = utcnow):
        self.db = db
        self.clock = clock

    # =====================================================
    # INTERNAL HELPERS
    # =====================================================

    async def _load(self, field_pool_id: str, for_update: bool = False) -> FieldPool:
        query = select(FieldPool).where(FieldPool.id == field_pool_id)
        if for_update:
            query = query.with_for_update(of=FieldPool)
        result = await self.db.execute(query)
        field_pool = result.scalar_one_or_none()
        if not field_pool:
            raise FieldPoolNotFoundError(field_pool_id)
        return field_pool

    async def _commit(self, field_pool_id: str) -> None:
        try:
            await self.db.commit()
        except StaleDataError:
            await self.db.rollback()
            logger.warning(f"[FieldPool] Concurrent update detected on {field_pool_id}")
            raise ConcurrentUpdateError("Field pool", field_pool_id)

    async def get_counts(self, field_pool_id: str) -> Dict[str, int]:
        """Number of related rows, keyed like the response `counts` block"""

        async def count(model, column) -> int:
            result = await self.db.execute(
                select(func.count()).select_from(model).where(column == field_pool_id)
            )
            return result.scalar() or 0

        return {
            "lecturer_selections": await count(LecturerSelection, LecturerSelection.field_pool_id),
            "student_selections": await count(StudentSelection, StudentSelection.field_pool_id),
            "projects": await count(Project, Project.field_pool_id),
            "domains": await count(FieldPoolDomain, FieldPoolDomain.field_pool_id),
        }

    # =====================================================
    # CRUD
    # =====================================================

    async def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Create a field pool; status defaults to OPEN and is not derived from the deadline"""
        name = (data.get("name") or "").strip()
        if len(name) < 2:
            raise InvalidArgumentError("Field pool name must be at least 2 characters", field="name")

        field_pool = FieldPool(
            name=name,
            description=data.get("description"),
            long_description=data.get("long_description"),
            registration_deadline=to_naive_utc(data.get("registration_deadline")),
            status=coerce_status(data["status"]) if data.get("status") else FieldPoolStatus.OPEN,
            domain_links=[],
        )
        self.db.add(field_pool)
        await self.db.commit()

        logger.info(f"[FieldPool] Created {field_pool.id} '{field_pool.name}'")
        return {"message": "Field pool created successfully", "data": field_pool}

    async def get(self, field_pool_id: str) -> Dict[str, Any]:
        """
        Fetch a field pool with its relation counts.

        The stored status is returned as-is unless FIELD_POOL_REDERIVE_ON_READ
        is enabled, in which case an OPEN pool past its deadline is closed and
        the change persisted.
        """
        field_pool = await self._load(field_pool_id, for_update=settings.FIELD_POOL_REDERIVE_ON_READ)

        if settings.FIELD_POOL_REDERIVE_ON_READ and field_pool.registration_deadline is not None:
            now = self.clock()
            if field_pool.status == FieldPoolStatus.OPEN and field_pool.registration_deadline <= now:
                field_pool.status = FieldPoolStatus.CLOSED
                await self._commit(field_pool_id)
                logger.log_status_transition(
                    "FieldPool", field_pool_id, FieldPoolStatus.OPEN.value,
                    FieldPoolStatus.CLOSED.value, "deadline passed (read-time derivation)"
                )

        return {
            "message": "Field pool retrieved successfully",
            "data": field_pool,
            "counts": await self.get_counts(field_pool_id),
        }

    async def find(
        self,
        name: Optional[str] = None,
        status: Optional[Any] = None,
        search: Optional[str] = None,
        domain_id: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        order_by: str = "created_at",
        asc: bool = False,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Filtered, ordered, paginated field pool listing"""
        if order_by not in ORDERABLE_FIELDS:
            raise InvalidArgumentError(
                f"Cannot order by '{order_by}'. Allowed: {', '.join(ORDERABLE_FIELDS)}",
                field="order_by",
            )

        query = select(FieldPool)

        if name:
            query = query.where(FieldPool.name.ilike(f"%{name}%"))
        if status:
            query = query.where(FieldPool.status == coerce_status(status))
        if search:
            pattern = f"%{search}%"
            query = query.where(or_(FieldPool.name.ilike(pattern), FieldPool.description.ilike(pattern)))
        if domain_id:
            query = query.where(
                FieldPool.id.in_(
                    select(FieldPoolDomain.field_pool_id).where(FieldPoolDomain.domain_id == domain_id)
                )
            )
        if start_date:
            query = query.where(FieldPool.registration_deadline >= to_naive_utc(start_date))
        if end_date:
            query = query.where(FieldPool.registration_deadline <= to_naive_utc(end_date))

        column = ORDERABLE_FIELDS[order_by]
        query = query.order_by(column.asc() if asc else column.desc(), FieldPool.id)

        result = await paginate(self.db, query, page=page, limit=limit)
        total = result["pagination"]["total"]

        return {
            "message": "Field pools retrieved successfully" if total > 0 else "No matching field pools found",
            "data": result["items"],
            "pagination": result["pagination"],
        }

    async def list_all(self) -> Dict[str, Any]:
        """Every field pool, ordered by name (for dropdowns)"""
        result = await self.db.execute(select(FieldPool).order_by(FieldPool.name))
        return {
            "message": "Field pools retrieved successfully",
            "data": list(result.scalars().all()),
        }

    async def update(self, field_pool_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply a partial update.

        When the patch carries a registration deadline the status is
        reconciled against it; a derived status overrides an explicit
        `status` in the same patch. Without a deadline, or when derivation
        does not fire, an explicit status is applied as given.
        """
        unknown = set(patch) - set(UPDATABLE_FIELDS)
        if unknown:
            raise InvalidArgumentError(
                f"Unknown field(s): {', '.join(sorted(unknown))}", field=sorted(unknown)[0]
            )

        changes = dict(patch)
        if "name" in changes:
            name = (changes["name"] or "").strip()
            if len(name) < 2:
                raise InvalidArgumentError("Field pool name must be at least 2 characters", field="name")
            changes["name"] = name
        if changes.get("status") is not None:
            changes["status"] = coerce_status(changes["status"])
        elif "status" in changes:
            del changes["status"]
        if "registration_deadline" in changes:
            changes["registration_deadline"] = to_naive_utc(changes["registration_deadline"])

        field_pool = await self._load(field_pool_id, for_update=True)
        previous_status = field_pool.status

        derived_status = None
        new_deadline = changes.get("registration_deadline")
        if new_deadline is not None:
            derived_status = derive_status_for_deadline(previous_status, new_deadline, self.clock())
            if derived_status is not None:
                changes["status"] = derived_status

        for field, value in changes.items():
            setattr(field_pool, field, value)

        await self._commit(field_pool_id)

        if derived_status is not None:
            logger.log_status_transition(
                "FieldPool", field_pool_id, previous_status.value, derived_status.value,
                "registration deadline updated",
            )
            message = (
                "Field pool updated successfully. Status was automatically changed to "
                f"{derived_status.value} based on the registration deadline."
            )
        elif field_pool.status != previous_status:
            logger.log_status_transition(
                "FieldPool", field_pool_id, previous_status.value, field_pool.status.value, "manual update"
            )
            message = f"Field pool updated successfully. Status changed to {field_pool.status.value}."
        else:
            message = "Field pool updated successfully"

        return {"message": message, "data": field_pool}

    async def extend_deadline(
        self,
        field_pool_id: str,
        new_deadline: datetime,
        reason: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Move the registration deadline into the future.

        Reopens a CLOSED pool; never closes one. The reason is only logged.
        """
        if new_deadline is None:
            raise InvalidDeadlineError("New deadline is required")
        new_deadline = to_naive_utc(new_deadline)
        now = self.clock()
        if new_deadline <= now:
            raise InvalidDeadlineError()

        field_pool = await self._load(field_pool_id, for_update=True)
        previous_status = field_pool.status

        reopened = derive_status_for_deadline(previous_status, new_deadline, now, allow_close=False)
        field_pool.registration_deadline = new_deadline
        if reopened is not None:
            field_pool.status = reopened

        await self._commit(field_pool_id)

        if reopened is not None:
            logger.log_status_transition(
                "FieldPool", field_pool_id, previous_status.value, reopened.value,
                "deadline extended to a future date",
            )
        logger.info(
            f"[FieldPool] Deadline of {field_pool_id} extended to {new_deadline.isoformat()}"
            + (f". Reason: {reason}" if reason else ""),
            extra={"event_type": "deadline_extended", "extension_reason": reason},
        )

        message = (
            "Registration deadline extended successfully. The field pool was automatically reopened."
            if reopened is not None
            else "Registration deadline extended successfully"
        )
        return {"message": message, "data": field_pool}

    async def delete(self, field_pool_id: str) -> Dict[str, Any]:
        """Hard delete; selections and domain links go with it, projects are detached"""
        await self._load(field_pool_id)

        await self.db.execute(delete(FieldPoolDomain).where(FieldPoolDomain.field_pool_id == field_pool_id))
        await self.db.execute(delete(LecturerSelection).where(LecturerSelection.field_pool_id == field_pool_id))
        await self.db.execute(delete(StudentSelection).where(StudentSelection.field_pool_id == field_pool_id))
        await self.db.execute(
            sql_update(Project).where(Project.field_pool_id == field_pool_id).values(field_pool_id=None)
        )
        await self.db.execute(delete(FieldPool).where(FieldPool.id == field_pool_id))
        await self.db.commit()

        # Drop the cached instance so later lookups in this session miss
        self.db.expunge_all()

        logger.info(f"[FieldPool] Deleted {field_pool_id}")
        return {"message": "Field pool deleted successfully", "data": None}

    # =====================================================
    # DOMAINS
    # =====================================================

    async def create_domain(self, name: str, description: Optional[str] = None) -> Dict[str, Any]:
        name = (name or "").strip()
        if not name:
            raise InvalidArgumentError("Domain name is required", field="name")

        existing = await self.db.execute(select(Domain).where(Domain.name == name))
        if existing.scalar_one_or_none():
            raise DuplicateDomainError(f"Domain '{name}' already exists", name=name)

        domain = Domain(name=name, description=description)
        self.db.add(domain)
        await self.db.commit()
        return {"message": "Domain created successfully", "data": domain}

    async def add_domain(self, field_pool_id: str, domain_id: str) -> Dict[str, Any]:
        field_pool = await self._load(field_pool_id)

        domain = await self.db.get(Domain, domain_id)
        if not domain:
            raise DomainNotFoundError(domain_id)

        if any(link.domain_id == domain_id for link in field_pool.domain_links):
            raise DuplicateDomainError(
                "Domain is already attached to this field pool",
                field_pool_id=field_pool_id, domain_id=domain_id,
            )

        link = FieldPoolDomain(domain=domain)
        field_pool.domain_links.append(link)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateDomainError(
                "Domain is already attached to this field pool",
                field_pool_id=field_pool_id, domain_id=domain_id,
            )

        return {"message": "Domain added to field pool successfully", "data": domain}

    async def remove_domain(self, field_pool_id: str, domain_id: str) -> Dict[str, Any]:
        field_pool = await self._load(field_pool_id)

        link = next((l for l in field_pool.domain_links if l.domain_id == domain_id), None)
        if link is None:
            raise ResourceNotFoundError("Field pool domain", f"{field_pool_id}/{domain_id}")

        field_pool.domain_links.remove(link)
        await self.db.commit()
        return {"message": "Domain removed from field pool successfully", "data": None}

    async def get_domains(self, field_pool_id: str) -> Dict[str, Any]:
        field_pool = await self._load(field_pool_id)
        domains: List[Domain] = field_pool.domains
        return {
            "message": "Field pool domains retrieved successfully" if domains else "Field pool has no domains",
            "data": domains,
        }

    # =====================================================
    # LECTURERS
    # =====================================================

    async def get_lecturers(self, field_pool_id: str) -> Dict[str, Any]:
        """Lecturer registrations for a pool, oldest first"""
        await self._load(field_pool_id)

        result = await self.db.execute(
            select(LecturerSelection)
            .where(LecturerSelection.field_pool_id == field_pool_id)
            .order_by(LecturerSelection.created_at, LecturerSelection.id)
        )
        lecturers = list(result.scalars().all())

        return {
            "message": (
                "Field pool lecturers retrieved successfully" if lecturers
                else "No lecturers registered for this field pool"
            ),
            "data": lecturers,
        }


# Factory function
def get_field_pool_service(db: AsyncSession) -> FieldPoolService:
    return FieldPoolService(db)
