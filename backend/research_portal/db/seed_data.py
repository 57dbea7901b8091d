"""
Database Seed Data Module

Sample domains, field pools, projects, evaluations and scores.
Run with: python -m research_portal.db.seed_data
"""
import asyncio
import random
from datetime import timedelta
from typing import List

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from research_portal.core.database import AsyncSessionLocal, init_db
from research_portal.core.types import utcnow
from research_portal.models.field_pool import (
    Domain,
    FieldPool,
    FieldPoolDomain,
    FieldPoolStatus,
    LecturerSelection,
    LecturerSelectionStatus,
    StudentSelection,
)
from research_portal.models.project import Project, ProjectStatus
from research_portal.models.evaluation import (
    EvaluationScore,
    EvaluationStatus,
    EvaluatorRole,
    ProjectEvaluation,
)


# ==================== Sample Data Constants ====================

SAMPLE_DOMAINS = [
    {"name": "Machine Learning", "description": "Statistical learning, deep learning and applications"},
    {"name": "Computer Networks", "description": "Protocols, routing and network security"},
    {"name": "Software Engineering", "description": "Processes, testing and maintenance of software systems"},
    {"name": "Data Engineering", "description": "Pipelines, warehousing and large-scale processing"},
    {"name": "Human-Computer Interaction", "description": "Usability, accessibility and interaction design"},
    {"name": "Embedded Systems", "description": "IoT devices, sensors and low-power computing"},
]

# Deadline offsets in days from now; negative means already passed
SAMPLE_FIELD_POOLS = [
    {"name": "Applied Artificial Intelligence", "description": "AI for healthcare, agriculture and education", "days": 30, "status": FieldPoolStatus.OPEN, "domains": ["Machine Learning", "Data Engineering"]},
    {"name": "Secure Distributed Systems", "description": "Consensus, fault tolerance and network security", "days": 14, "status": FieldPoolStatus.OPEN, "domains": ["Computer Networks"]},
    {"name": "Software Quality", "description": "Static analysis, testing and refactoring research", "days": -7, "status": FieldPoolStatus.CLOSED, "domains": ["Software Engineering"]},
    {"name": "Smart Campus", "description": "IoT sensing and analytics for the university campus", "days": -30, "status": FieldPoolStatus.CLOSED, "domains": ["Embedded Systems", "Data Engineering"]},
    {"name": "Accessible Interfaces", "description": "Interfaces for users with visual impairments", "days": 60, "status": FieldPoolStatus.HIDDEN, "domains": ["Human-Computer Interaction"]},
]

SAMPLE_PROJECTS = [
    {"title": "Crop Disease Detection from Leaf Images", "pool": "Applied Artificial Intelligence"},
    {"title": "Predicting Student Dropout with Gradient Boosting", "pool": "Applied Artificial Intelligence"},
    {"title": "Byzantine-Tolerant Key-Value Store", "pool": "Secure Distributed Systems"},
    {"title": "Flaky Test Detection in CI Pipelines", "pool": "Software Quality"},
    {"title": "Energy Monitoring for Lecture Halls", "pool": "Smart Campus"},
    {"title": "Screen Reader Friendly Timetable", "pool": "Accessible Interfaces"},
]


async def seed_domains(db: AsyncSession) -> List[Domain]:
    domains = [Domain(**data) for data in SAMPLE_DOMAINS]
    db.add_all(domains)
    await db.flush()
    print(f"Created {len(domains)} domains")
    return domains


async def seed_field_pools(db: AsyncSession, domains: List[Domain]) -> List[FieldPool]:
    by_name = {d.name: d for d in domains}
    now = utcnow()
    field_pools = []

    for data in SAMPLE_FIELD_POOLS:
        field_pool = FieldPool(
            name=data["name"],
            description=data["description"],
            status=data["status"],
            registration_deadline=now + timedelta(days=data["days"]),
            domain_links=[FieldPoolDomain(domain=by_name[name]) for name in data["domains"]],
        )
        db.add(field_pool)
        field_pools.append(field_pool)
    await db.flush()

    for field_pool in field_pools:
        for i in range(random.randint(1, 3)):
            db.add(LecturerSelection(
                field_pool_id=field_pool.id,
                lecturer_id=f"lecturer-{i + 1}",
                capacity=5,
                current_capacity=random.randint(0, 5),
                status=random.choice(list(LecturerSelectionStatus)),
            ))
        for i in range(random.randint(2, 6)):
            db.add(StudentSelection(
                field_pool_id=field_pool.id,
                student_id=f"student-{i + 1}",
                priority=i + 1,
            ))
    await db.flush()

    print(f"Created {len(field_pools)} field pools")
    return field_pools


async def seed_projects(db: AsyncSession, field_pools: List[FieldPool]) -> List[Project]:
    by_name = {fp.name: fp for fp in field_pools}
    projects = [
        Project(title=data["title"], field_pool_id=by_name[data["pool"]].id, status=ProjectStatus.IN_PROGRESS)
        for data in SAMPLE_PROJECTS
    ]
    db.add_all(projects)
    await db.flush()
    print(f"Created {len(projects)} projects")
    return projects


async def seed_evaluations(db: AsyncSession, projects: List[Project]) -> List[ProjectEvaluation]:
    """Evaluations with pending scores for the first half of the projects"""
    evaluations = []
    for project in projects[: len(projects) // 2]:
        scores = [
            EvaluationScore(evaluator_id="advisor-1", role=EvaluatorRole.ADVISOR, score=round(random.uniform(6, 10), 1)),
            EvaluationScore(evaluator_id="committee-1", role=EvaluatorRole.COMMITTEE, score=round(random.uniform(5, 10), 1)),
            EvaluationScore(evaluator_id="committee-2", role=EvaluatorRole.COMMITTEE, score=round(random.uniform(5, 10), 1)),
        ]
        evaluation = ProjectEvaluation(project=project, status=EvaluationStatus.PENDING, scores=scores)
        project.status = ProjectStatus.WAITING_FOR_EVALUATION
        db.add(evaluation)
        evaluations.append(evaluation)
    await db.flush()
    print(f"Created {len(evaluations)} evaluations")
    return evaluations


async def seed_all():
    """Seed all sample data"""
    print("=" * 50)
    print("Starting database seeding...")
    print("=" * 50)

    await init_db()

    async with AsyncSessionLocal() as db:
        try:
            domains = await seed_domains(db)
            field_pools = await seed_field_pools(db, domains)
            projects = await seed_projects(db, field_pools)
            await seed_evaluations(db, projects)

            await db.commit()
            print("=" * 50)
            print("Database seeding completed successfully!")
            print("=" * 50)

        except Exception as e:
            await db.rollback()
            print(f"Error seeding database: {e}")
            raise


async def clear_all():
    """Clear all data from database"""
    print("Clearing all data...")
    async with AsyncSessionLocal() as db:
        # Delete in reverse order of dependencies
        for table in (
            "evaluation_scores",
            "project_evaluations",
            "projects",
            "student_selections",
            "lecturer_selections",
            "field_pool_domains",
            "field_pools",
            "domains",
        ):
            await db.execute(text(f"DELETE FROM {table}"))
        await db.commit()
        print("All data cleared!")


def main():
    import sys

    if len(sys.argv) > 1 and sys.argv[1] == "clear":
        asyncio.run(clear_all())
    else:
        asyncio.run(seed_all())


if __name__ == "__main__":
    main()
