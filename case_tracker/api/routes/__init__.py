"""API routes package."""

from fastapi import APIRouter

from case_tracker.api.routes.cases import router as cases_router
from case_tracker.api.routes.health import router as health_router
from case_tracker.api.routes.permissions import router as permissions_router
from case_tracker.api.routes.users import router as users_router

# Create API router with all sub-routers
api_router = APIRouter()

# Register all route modules
api_router.include_router(health_router)
api_router.include_router(cases_router)
api_router.include_router(users_router)
api_router.include_router(permissions_router)


__all__ = [
    "api_router",
    "health_router",
    "cases_router",
    "users_router",
    "permissions_router",
]
