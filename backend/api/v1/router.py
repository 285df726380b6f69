"""API v1 aggregated router.

All v1 endpoints are registered here and mounted under /api/v1 in main.py.
"""

from fastapi import APIRouter

from api.routes import health, workflows

api_v1_router = APIRouter()

# Health (no tenant required)
api_v1_router.include_router(
    health.router,
    tags=["Health"],
)

# Workflow events and executions
api_v1_router.include_router(
    workflows.router,
    prefix="/workflows",
    tags=["Workflows"],
)
