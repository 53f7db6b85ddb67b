"""API v1 routes."""

from fastapi import APIRouter

from cragdesk.api.v1 import auth, health, sessions, users

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(sessions.router, prefix="/auth/sessions", tags=["sessions"])
router.include_router(users.router, prefix="/users", tags=["users"])
