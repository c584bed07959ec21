"""API v1 routes."""

from fastapi import APIRouter

from accounts.api.v1 import accounts, admin, auth, health

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(accounts.router, prefix="/accounts", tags=["accounts"])
router.include_router(auth.router, prefix="/sessions", tags=["sessions"])
router.include_router(admin.router, prefix="/admin", tags=["admin"])
