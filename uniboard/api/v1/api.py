"""
API Router configuration.

Aggregates all API endpoints with proper tagging and prefixes.
"""

from fastapi import APIRouter

from uniboard.api.v1.endpoints import auth, super_admin, users

api_router = APIRouter()

# Authentication (login/register/refresh/logout are public)
api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["authentication"]
)

# Profiles (owner or admin)
api_router.include_router(
    users.router,
    prefix="/users",
    tags=["users"]
)

# Account management (super admin only)
api_router.include_router(
    super_admin.router,
    prefix="/super-admin",
    tags=["super-admin"]
)
