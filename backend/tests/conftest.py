"""
Research Portal - Test Configuration and Fixtures
"""
import os
from datetime import timedelta
from typing import AsyncGenerator
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool
from faker import Faker

# Set testing environment
os.environ['ENVIRONMENT'] = 'testing'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./test.db'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['FIELD_POOL_REDERIVE_ON_READ'] = 'false'

from research_portal.main import app
from research_portal.core.database import Base, get_db
from research_portal.core.types import utcnow
from research_portal.models.field_pool import FieldPool, FieldPoolStatus, Domain
from research_portal.models.project import Project, ProjectStatus
from research_portal.models.evaluation import (
    ProjectEvaluation,
    EvaluationScore,
    EvaluationStatus,
)

fake = Faker()

# Test database setup
TEST_DATABASE_URL = 'sqlite+aiosqlite:///./test.db'
test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False
)

# Fixed "now" for service tests that inject a clock
NOW = utcnow().replace(microsecond=0)


@pytest.fixture(scope='function')
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database override"""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock():
    """Injectable clock pinned to NOW"""
    return lambda: NOW


@pytest.fixture
def make_field_pool(db_session: AsyncSession):
    """Factory inserting a field pool with a status and deadline offset (days from NOW)"""
    async def _make(status: FieldPoolStatus = FieldPoolStatus.OPEN, days: float = 7, **kwargs) -> FieldPool:
        field_pool = FieldPool(
            name=kwargs.pop('name', fake.catch_phrase()[:200]),
            description=kwargs.pop('description', fake.sentence()),
            status=status,
            registration_deadline=NOW + timedelta(days=days),
            domain_links=[],
            **kwargs
        )
        db_session.add(field_pool)
        await db_session.commit()
        return field_pool
    return _make


@pytest.fixture
async def domain(db_session: AsyncSession) -> Domain:
    domain = Domain(name=fake.unique.job()[:200], description=fake.sentence())
    db_session.add(domain)
    await db_session.commit()
    return domain


@pytest.fixture
async def project(db_session: AsyncSession) -> Project:
    project = Project(title=fake.sentence(nb_words=6), status=ProjectStatus.IN_PROGRESS)
    db_session.add(project)
    await db_session.commit()
    return project


@pytest.fixture
def make_evaluation(db_session: AsyncSession, project: Project):
    """Factory inserting an evaluation for `project` with (role, score) pairs"""
    async def _make(scores=(), status: EvaluationStatus = EvaluationStatus.PENDING) -> ProjectEvaluation:
        evaluation = ProjectEvaluation(
            project=project,
            status=status,
            scores=[
                EvaluationScore(evaluator_id=f'evaluator-{i}', role=role, score=score)
                for i, (role, score) in enumerate(scores)
            ],
        )
        db_session.add(evaluation)
        await db_session.commit()
        return evaluation
    return _make

