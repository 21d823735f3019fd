"""API routes."""

from fastapi import APIRouter

from wakehub.api import auth, devices, health, users

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, tags=["auth"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(devices.router, prefix="/devices", tags=["devices"])
