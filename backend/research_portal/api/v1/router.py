from fastapi import APIRouter
from research_portal.api.v1.endpoints import field_pools, projects, evaluations, health

api_router = APIRouter()

api_router.include_router(health.router)
api_router.include_router(field_pools.router)
api_router.include_router(field_pools.domains_router)
api_router.include_router(projects.router)
api_router.include_router(evaluations.router)
