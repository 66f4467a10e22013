"""API route aggregation.

All routers registered here get mounted in main.py under /api.

Learn: No router-level auth dependency here. Task routes serve both
registered and anonymous callers, so each handler resolves the caller's
Identity itself and the service layer enforces ownership.
"""

from fastapi import APIRouter

from taskboard.api.health import router as health_router
from taskboard.api.tasks import router as tasks_router
from taskboard.api.users import router as users_router

api_router = APIRouter(prefix="/api")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(users_router, tags=["users"])
api_router.include_router(tasks_router, tags=["tasks"])
