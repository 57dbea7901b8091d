"""
Unit Tests for FieldPoolService

Covers:
1. Deadline-driven status reconciliation in update()
2. extend_deadline() reopening and never closing
3. Reads returning stored status (and the opt-in read-time derivation)
4. Find/filter/pagination, domains, lecturers, delete
5. Optimistic locking
"""
import pytest
from datetime import timedelta
from sqlalchemy import text, select, func

from research_portal.core.config import settings
from research_portal.core.exceptions import (
    ConcurrentUpdateError,
    DomainNotFoundError,
    DuplicateDomainError,
    FieldPoolNotFoundError,
    InvalidArgumentError,
    InvalidDeadlineError,
)
from research_portal.models.field_pool import (
    FieldPool,
    FieldPoolDomain,
    FieldPoolStatus,
    LecturerSelection,
    LecturerSelectionStatus,
    StudentSelection,
)
from research_portal.models.project import Project
from research_portal.services.field_pool_service import (
    FieldPoolService,
    coerce_status,
    derive_status_for_deadline,
)


# =============================================================================
# PURE DERIVATION
# =============================================================================
class TestDeriveStatusForDeadline:

    def test_future_deadline_reopens_closed(self, now):
        assert derive_status_for_deadline(FieldPoolStatus.CLOSED, now + timedelta(days=1), now) == FieldPoolStatus.OPEN

    def test_past_deadline_closes_open(self, now):
        assert derive_status_for_deadline(FieldPoolStatus.OPEN, now - timedelta(days=1), now) == FieldPoolStatus.CLOSED

    def test_deadline_equal_to_now_is_not_future(self, now):
        assert derive_status_for_deadline(FieldPoolStatus.OPEN, now, now) == FieldPoolStatus.CLOSED

    def test_no_change_when_already_consistent(self, now):
        assert derive_status_for_deadline(FieldPoolStatus.OPEN, now + timedelta(days=1), now) is None
        assert derive_status_for_deadline(FieldPoolStatus.CLOSED, now - timedelta(days=1), now) is None

    def test_hidden_is_never_touched(self, now):
        assert derive_status_for_deadline(FieldPoolStatus.HIDDEN, now + timedelta(days=1), now) is None
        assert derive_status_for_deadline(FieldPoolStatus.HIDDEN, now - timedelta(days=1), now) is None

    def test_close_can_be_disabled(self, now):
        assert derive_status_for_deadline(
            FieldPoolStatus.OPEN, now - timedelta(days=1), now, allow_close=False
        ) is None

    def test_coerce_status_accepts_lowercase(self):
        assert coerce_status("hidden") == FieldPoolStatus.HIDDEN

    def test_coerce_status_rejects_unknown(self):
        with pytest.raises(InvalidArgumentError):
            coerce_status("ARCHIVED")


# =============================================================================
# UPDATE
# =============================================================================
class TestUpdate:

    @pytest.mark.asyncio
    async def test_future_deadline_reopens_closed_pool(self, db_session, make_field_pool, clock, now):
        field_pool = await make_field_pool(FieldPoolStatus.CLOSED, days=-3)

        result = await FieldPoolService(db_session, clock=clock).update(
            field_pool.id, {"registration_deadline": now + timedelta(days=10)}
        )

        assert result["data"].status == FieldPoolStatus.OPEN
        assert "automatically changed to OPEN" in result["message"]

    @pytest.mark.asyncio
    async def test_past_deadline_closes_open_pool(self, db_session, make_field_pool, clock, now):
        field_pool = await make_field_pool(FieldPoolStatus.OPEN, days=5)

        result = await FieldPoolService(db_session, clock=clock).update(
            field_pool.id, {"registration_deadline": now - timedelta(hours=1)}
        )

        assert result["data"].status == FieldPoolStatus.CLOSED
        assert "automatically changed to CLOSED" in result["message"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("initial, days, expected", [
        (FieldPoolStatus.CLOSED, 10, FieldPoolStatus.OPEN),
        (FieldPoolStatus.OPEN, -1, FieldPoolStatus.CLOSED),
    ])
    async def test_derived_status_is_persisted(
        self, db_session, make_field_pool, clock, now, initial, days, expected
    ):
        field_pool = await make_field_pool(initial, days=-days)
        service = FieldPoolService(db_session, clock=clock)
        await service.update(field_pool.id, {"registration_deadline": now + timedelta(days=days)})

        db_session.expire_all()

        stored = await db_session.scalar(select(FieldPool.status).where(FieldPool.id == field_pool.id))
        assert stored == expected
        result = await service.get(field_pool.id)
        assert result["data"].status == expected

    @pytest.mark.asyncio
    async def test_hidden_pool_stays_hidden(self, db_session, make_field_pool, clock, now):
        field_pool = await make_field_pool(FieldPoolStatus.HIDDEN, days=-3)
        service = FieldPoolService(db_session, clock=clock)

        result = await service.update(field_pool.id, {"registration_deadline": now + timedelta(days=10)})
        assert result["data"].status == FieldPoolStatus.HIDDEN

        result = await service.update(field_pool.id, {"registration_deadline": now - timedelta(days=10)})
        assert result["data"].status == FieldPoolStatus.HIDDEN
        assert result["message"] == "Field pool updated successfully"

    @pytest.mark.asyncio
    async def test_hidden_pool_with_explicit_status(self, db_session, make_field_pool, clock, now):
        field_pool = await make_field_pool(FieldPoolStatus.HIDDEN, days=-3)

        result = await FieldPoolService(db_session, clock=clock).update(
            field_pool.id,
            {"registration_deadline": now + timedelta(days=10), "status": "OPEN"},
        )

        assert result["data"].status == FieldPoolStatus.OPEN
        assert "Status changed to OPEN" in result["message"]

    @pytest.mark.asyncio
    async def test_derived_status_overrides_explicit_status(self, db_session, make_field_pool, clock, now):
        field_pool = await make_field_pool(FieldPoolStatus.CLOSED, days=-3)

        result = await FieldPoolService(db_session, clock=clock).update(
            field_pool.id,
            {"registration_deadline": now + timedelta(days=10), "status": "CLOSED"},
        )

        assert result["data"].status == FieldPoolStatus.OPEN

    @pytest.mark.asyncio
    async def test_explicit_status_applies_when_derivation_does_not_fire(self, db_session, make_field_pool, clock, now):
        field_pool = await make_field_pool(FieldPoolStatus.OPEN, days=3)

        result = await FieldPoolService(db_session, clock=clock).update(
            field_pool.id,
            {"registration_deadline": now + timedelta(days=10), "status": "HIDDEN"},
        )

        assert result["data"].status == FieldPoolStatus.HIDDEN

    @pytest.mark.asyncio
    async def test_update_without_deadline_keeps_status(self, db_session, make_field_pool, clock):
        # Deadline already passed but nobody touched it: no derivation
        field_pool = await make_field_pool(FieldPoolStatus.OPEN, days=-3)

        result = await FieldPoolService(db_session, clock=clock).update(
            field_pool.id, {"name": "Renamed pool", "long_description": "More detail"}
        )

        assert result["data"].status == FieldPoolStatus.OPEN
        assert result["data"].name == "Renamed pool"
        assert result["data"].long_description == "More detail"
        assert result["message"] == "Field pool updated successfully"

    @pytest.mark.asyncio
    async def test_update_bumps_version(self, db_session, make_field_pool, clock):
        field_pool = await make_field_pool()
        assert field_pool.version == 1

        await FieldPoolService(db_session, clock=clock).update(field_pool.id, {"description": "changed"})

        assert field_pool.version == 2

    @pytest.mark.asyncio
    async def test_update_missing_pool(self, db_session, clock):
        with pytest.raises(FieldPoolNotFoundError) as exc_info:
            await FieldPoolService(db_session, clock=clock).update("missing-id", {"name": "Anything"})
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_update_rejects_unknown_fields(self, db_session, make_field_pool, clock):
        field_pool = await make_field_pool()
        with pytest.raises(InvalidArgumentError):
            await FieldPoolService(db_session, clock=clock).update(field_pool.id, {"version": 99})

    @pytest.mark.asyncio
    async def test_update_rejects_invalid_status(self, db_session, make_field_pool, clock):
        field_pool = await make_field_pool()
        with pytest.raises(InvalidArgumentError):
            await FieldPoolService(db_session, clock=clock).update(field_pool.id, {"status": "ARCHIVED"})

    @pytest.mark.asyncio
    async def test_stale_version_raises_conflict(self, db_session, make_field_pool, clock):
        field_pool = await make_field_pool()

        # Another writer bumps the version behind this session's back
        await db_session.execute(
            text("UPDATE field_pools SET version = version + 1 WHERE id = :id"),
            {"id": field_pool.id},
        )

        with pytest.raises(ConcurrentUpdateError) as exc_info:
            await FieldPoolService(db_session, clock=clock).update(field_pool.id, {"name": "Lost update"})
        assert exc_info.value.status_code == 409


# =============================================================================
# EXTEND DEADLINE
# =============================================================================
class TestExtendDeadline:

    @pytest.mark.asyncio
    async def test_reopens_closed_pool(self, db_session, make_field_pool, clock, now):
        field_pool = await make_field_pool(FieldPoolStatus.CLOSED, days=-1)

        result = await FieldPoolService(db_session, clock=clock).extend_deadline(
            field_pool.id, now + timedelta(days=14), reason="Late registrations approved"
        )

        assert result["data"].status == FieldPoolStatus.OPEN
        assert result["data"].registration_deadline == now + timedelta(days=14)
        assert "reopened" in result["message"]

    @pytest.mark.asyncio
    async def test_open_pool_stays_open(self, db_session, make_field_pool, clock, now):
        field_pool = await make_field_pool(FieldPoolStatus.OPEN, days=1)

        result = await FieldPoolService(db_session, clock=clock).extend_deadline(
            field_pool.id, now + timedelta(days=14)
        )

        assert result["data"].status == FieldPoolStatus.OPEN
        assert result["message"] == "Registration deadline extended successfully"

    @pytest.mark.asyncio
    async def test_hidden_pool_stays_hidden(self, db_session, make_field_pool, clock, now):
        field_pool = await make_field_pool(FieldPoolStatus.HIDDEN, days=-1)

        result = await FieldPoolService(db_session, clock=clock).extend_deadline(
            field_pool.id, now + timedelta(days=14)
        )

        assert result["data"].status == FieldPoolStatus.HIDDEN

    @pytest.mark.asyncio
    async def test_past_deadline_rejected_without_changes(self, db_session, make_field_pool, clock, now):
        field_pool = await make_field_pool(FieldPoolStatus.OPEN, days=3)
        original_deadline = field_pool.registration_deadline

        with pytest.raises(InvalidDeadlineError) as exc_info:
            await FieldPoolService(db_session, clock=clock).extend_deadline(field_pool.id, now - timedelta(days=1))

        assert exc_info.value.status_code == 400
        assert field_pool.status == FieldPoolStatus.OPEN
        assert field_pool.registration_deadline == original_deadline

    @pytest.mark.asyncio
    async def test_deadline_equal_to_now_rejected(self, db_session, make_field_pool, clock, now):
        field_pool = await make_field_pool(FieldPoolStatus.CLOSED, days=-3)
        with pytest.raises(InvalidDeadlineError):
            await FieldPoolService(db_session, clock=clock).extend_deadline(field_pool.id, now)

    @pytest.mark.asyncio
    async def test_missing_pool(self, db_session, clock, now):
        with pytest.raises(FieldPoolNotFoundError):
            await FieldPoolService(db_session, clock=clock).extend_deadline("missing-id", now + timedelta(days=1))


# =============================================================================
# READS
# =============================================================================
class TestGet:

    @pytest.mark.asyncio
    async def test_returns_stored_status_unchanged(self, db_session, make_field_pool, clock):
        field_pool = await make_field_pool(FieldPoolStatus.OPEN, days=-10)

        result = await FieldPoolService(db_session, clock=clock).get(field_pool.id)

        assert result["data"].status == FieldPoolStatus.OPEN

    @pytest.mark.asyncio
    async def test_read_time_derivation_when_enabled(self, db_session, make_field_pool, clock, monkeypatch):
        monkeypatch.setattr(settings, "FIELD_POOL_REDERIVE_ON_READ", True)
        expired = await make_field_pool(FieldPoolStatus.OPEN, days=-10)
        closed = await make_field_pool(FieldPoolStatus.CLOSED, days=10)
        service = FieldPoolService(db_session, clock=clock)

        assert (await service.get(expired.id))["data"].status == FieldPoolStatus.CLOSED
        # Read-time derivation only closes; it never reopens
        assert (await service.get(closed.id))["data"].status == FieldPoolStatus.CLOSED

    @pytest.mark.asyncio
    async def test_counts(self, db_session, make_field_pool, domain, clock):
        field_pool = await make_field_pool()
        service = FieldPoolService(db_session, clock=clock)
        await service.add_domain(field_pool.id, domain.id)
        db_session.add_all([
            StudentSelection(field_pool_id=field_pool.id, student_id="s-1", priority=1),
            StudentSelection(field_pool_id=field_pool.id, student_id="s-2", priority=2),
            Project(title="Counted project", field_pool_id=field_pool.id),
        ])
        await db_session.commit()

        counts = (await service.get(field_pool.id))["counts"]

        assert counts == {"lecturer_selections": 0, "student_selections": 2, "projects": 1, "domains": 1}

    @pytest.mark.asyncio
    async def test_missing_pool(self, db_session, clock):
        with pytest.raises(FieldPoolNotFoundError):
            await FieldPoolService(db_session, clock=clock).get("missing-id")


class TestFind:

    @pytest.mark.asyncio
    async def test_filter_by_status(self, db_session, make_field_pool, clock):
        await make_field_pool(FieldPoolStatus.OPEN)
        await make_field_pool(FieldPoolStatus.CLOSED, days=-1)
        await make_field_pool(FieldPoolStatus.HIDDEN)

        result = await FieldPoolService(db_session, clock=clock).find(status="closed")

        assert [fp.status for fp in result["data"]] == [FieldPoolStatus.CLOSED]
        assert result["pagination"]["total"] == 1

    @pytest.mark.asyncio
    async def test_search_over_name_and_description(self, db_session, make_field_pool, clock):
        await make_field_pool(name="Quantum Computing", description="qubits")
        await make_field_pool(name="Networks", description="quantum key distribution")
        await make_field_pool(name="Databases", description="indexes")

        result = await FieldPoolService(db_session, clock=clock).find(search="quantum")

        assert {fp.name for fp in result["data"]} == {"Quantum Computing", "Networks"}

    @pytest.mark.asyncio
    async def test_deadline_range(self, db_session, make_field_pool, clock, now):
        await make_field_pool(name="Soon", days=2)
        await make_field_pool(name="Later", days=20)

        result = await FieldPoolService(db_session, clock=clock).find(
            start_date=now + timedelta(days=1), end_date=now + timedelta(days=5)
        )

        assert [fp.name for fp in result["data"]] == ["Soon"]

    @pytest.mark.asyncio
    async def test_order_by_name_and_paging(self, db_session, make_field_pool, clock):
        for name in ("Delta", "Alpha", "Charlie", "Bravo"):
            await make_field_pool(name=name)
        service = FieldPoolService(db_session, clock=clock)

        page1 = await service.find(order_by="name", asc=True, page=1, limit=3)
        page2 = await service.find(order_by="name", asc=True, page=2, limit=3)

        assert [fp.name for fp in page1["data"]] == ["Alpha", "Bravo", "Charlie"]
        assert [fp.name for fp in page2["data"]] == ["Delta"]
        assert page1["pagination"]["total_pages"] == 2
        assert page1["pagination"]["has_next"] is True
        assert page2["pagination"]["has_previous"] is True

    @pytest.mark.asyncio
    async def test_limit_capped(self, db_session, clock):
        result = await FieldPoolService(db_session, clock=clock).find(limit=1000)
        assert result["pagination"]["limit"] == settings.MAX_PAGE_SIZE
        assert result["message"] == "No matching field pools found"

    @pytest.mark.asyncio
    async def test_invalid_order_by(self, db_session, clock):
        with pytest.raises(InvalidArgumentError):
            await FieldPoolService(db_session, clock=clock).find(order_by="version")

    @pytest.mark.asyncio
    async def test_filter_by_domain(self, db_session, make_field_pool, domain, clock):
        tagged = await make_field_pool(name="Tagged")
        await make_field_pool(name="Untagged")
        service = FieldPoolService(db_session, clock=clock)
        await service.add_domain(tagged.id, domain.id)

        result = await service.find(domain_id=domain.id)

        assert [fp.name for fp in result["data"]] == ["Tagged"]


# =============================================================================
# CREATE / DELETE / DOMAINS
# =============================================================================
class TestLifecycle:

    @pytest.mark.asyncio
    async def test_create_defaults_to_open(self, db_session, clock, now):
        result = await FieldPoolService(db_session, clock=clock).create({
            "name": "  Robotics  ",
            "registration_deadline": now - timedelta(days=1),
        })

        # No derivation on create
        assert result["data"].status == FieldPoolStatus.OPEN
        assert result["data"].name == "Robotics"

    @pytest.mark.asyncio
    async def test_create_rejects_short_name(self, db_session, clock):
        with pytest.raises(InvalidArgumentError):
            await FieldPoolService(db_session, clock=clock).create({"name": "x"})

    @pytest.mark.asyncio
    async def test_list_all_ordered_by_name(self, db_session, make_field_pool, clock):
        for name in ("Zeta", "Alpha"):
            await make_field_pool(name=name)
        result = await FieldPoolService(db_session, clock=clock).list_all()
        assert [fp.name for fp in result["data"]] == ["Alpha", "Zeta"]

    @pytest.mark.asyncio
    async def test_delete_detaches_projects(self, db_session, make_field_pool, domain, clock):
        field_pool = await make_field_pool()
        service = FieldPoolService(db_session, clock=clock)
        await service.add_domain(field_pool.id, domain.id)
        project = Project(title="Orphan-to-be", field_pool_id=field_pool.id)
        db_session.add(project)
        await db_session.commit()
        project_id = project.id
        field_pool_id = field_pool.id

        await service.delete(field_pool_id)

        with pytest.raises(FieldPoolNotFoundError):
            await service.get(field_pool_id)
        links = await db_session.execute(select(func.count()).select_from(FieldPoolDomain))
        assert links.scalar() == 0
        detached = await db_session.get(Project, project_id)
        assert detached.field_pool_id is None

    @pytest.mark.asyncio
    async def test_delete_missing_pool(self, db_session, clock):
        with pytest.raises(FieldPoolNotFoundError):
            await FieldPoolService(db_session, clock=clock).delete("missing-id")


class TestDomains:

    @pytest.mark.asyncio
    async def test_add_list_remove(self, db_session, make_field_pool, domain, clock):
        field_pool = await make_field_pool()
        service = FieldPoolService(db_session, clock=clock)

        await service.add_domain(field_pool.id, domain.id)
        assert [d.id for d in (await service.get_domains(field_pool.id))["data"]] == [domain.id]

        await service.remove_domain(field_pool.id, domain.id)
        assert (await service.get_domains(field_pool.id))["data"] == []

    @pytest.mark.asyncio
    async def test_add_twice_conflicts(self, db_session, make_field_pool, domain, clock):
        field_pool = await make_field_pool()
        service = FieldPoolService(db_session, clock=clock)
        await service.add_domain(field_pool.id, domain.id)

        with pytest.raises(DuplicateDomainError):
            await service.add_domain(field_pool.id, domain.id)

    @pytest.mark.asyncio
    async def test_unknown_domain(self, db_session, make_field_pool, clock):
        field_pool = await make_field_pool()
        with pytest.raises(DomainNotFoundError):
            await FieldPoolService(db_session, clock=clock).add_domain(field_pool.id, "missing-domain")

    @pytest.mark.asyncio
    async def test_create_domain_duplicate_name(self, db_session, domain, clock):
        with pytest.raises(DuplicateDomainError):
            await FieldPoolService(db_session, clock=clock).create_domain(domain.name)


class TestLecturers:

    @pytest.mark.asyncio
    async def test_lists_registrations(self, db_session, make_field_pool, clock, now):
        field_pool = await make_field_pool()
        other = await make_field_pool()
        db_session.add_all([
            LecturerSelection(
                field_pool_id=field_pool.id, lecturer_id="lec-1", capacity=5, current_capacity=2,
                status=LecturerSelectionStatus.APPROVED, created_at=now - timedelta(days=2),
            ),
            LecturerSelection(
                field_pool_id=field_pool.id, lecturer_id="lec-2", capacity=3,
                created_at=now - timedelta(days=1),
            ),
            LecturerSelection(field_pool_id=other.id, lecturer_id="lec-3", capacity=1),
        ])
        await db_session.commit()

        result = await FieldPoolService(db_session, clock=clock).get_lecturers(field_pool.id)

        lecturers = result["data"]
        assert [s.lecturer_id for s in lecturers] == ["lec-1", "lec-2"]
        assert (lecturers[0].capacity, lecturers[0].current_capacity) == (5, 2)
        assert lecturers[0].status == LecturerSelectionStatus.APPROVED
        assert lecturers[1].status == LecturerSelectionStatus.PENDING
        assert result["message"] == "Field pool lecturers retrieved successfully"

    @pytest.mark.asyncio
    async def test_no_lecturers(self, db_session, make_field_pool, clock):
        field_pool = await make_field_pool()

        result = await FieldPoolService(db_session, clock=clock).get_lecturers(field_pool.id)

        assert result["data"] == []
        assert result["message"] == "No lecturers registered for this field pool"

    @pytest.mark.asyncio
    async def test_missing_pool(self, db_session, clock):
        with pytest.raises(FieldPoolNotFoundError):
            await FieldPoolService(db_session, clock=clock).get_lecturers("missing-id")
