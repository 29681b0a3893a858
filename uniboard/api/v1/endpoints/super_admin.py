"""
Account management endpoints.

All routes require the super_admin role. A role change or deletion also
removes the target's refresh token, forcing a fresh login; access tokens
already issued stay valid until expiry, but every request re-loads the
account so the new role applies immediately.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from uniboard.auth.dependencies import get_client_ip, require_super_admin
from uniboard.auth.password import (
    generate_secure_password,
    hash_password_async,
    is_valid_password,
)
from uniboard.auth.policy import Identity, parse_role
from uniboard.auth.refresh_store import RefreshTokenStore
from uniboard.core.database import get_db
from uniboard.core.errors import (
    InsufficientPermissionsError,
    ResourceNotFoundError,
    UserAlreadyExistsError,
    WeakPasswordError,
)
from uniboard.core.logging_setup import audit_event
from uniboard.core.validators import normalize_email, require_fields, sanitize_input
from uniboard.models.user import UserRole
from uniboard.schemas.common import SuccessResponse
from uniboard.schemas.user import (
    AdminCreateRequest,
    AdminCreateResponse,
    RoleUpdateRequest,
    UserPublic,
    user_to_public,
)
from uniboard.services import users as user_service

router = APIRouter()


@router.get("/users", response_model=SuccessResponse[List[UserPublic]])
async def list_users(
    role: Optional[UserRole] = Query(default=None),
    identity: Identity = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db),
):
    """List all accounts, newest first, optionally filtered by role."""
    users = await user_service.list_users(db, role=role)
    return SuccessResponse[List[UserPublic]](data=[user_to_public(u) for u in users])


@router.post(
    "/admins",
    response_model=SuccessResponse[AdminCreateResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_admin(
    request: Request,
    data: AdminCreateRequest,
    identity: Identity = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Create an admin account.

    If no password is provided, a secure one is generated and returned once.
    """
    require_fields(data.email, data.first_name, data.last_name)
    email = normalize_email(data.email)

    generated_password = None
    if data.password:
        if not is_valid_password(data.password):
            raise WeakPasswordError()
        password = data.password
    else:
        password = generated_password = generate_secure_password()

    if await user_service.find_user_by_email(db, email):
        raise UserAlreadyExistsError()

    user = await user_service.create_user(
        db,
        email=email,
        password_hash=await hash_password_async(password),
        role=UserRole.ADMIN,
        first_name=sanitize_input(data.first_name),
        last_name=sanitize_input(data.last_name),
    )

    audit_event(
        "admin_created",
        user_id=identity.id,
        email=identity.email,
        ip_address=get_client_ip(request),
        target=user.email,
    )

    return SuccessResponse[AdminCreateResponse](
        data=AdminCreateResponse(user=user_to_public(user), generated_password=generated_password),
        message="Admin user created successfully",
    )


@router.patch("/users/{user_id}/role", response_model=SuccessResponse[UserPublic])
async def update_role(
    request: Request,
    user_id: str,
    data: RoleUpdateRequest,
    identity: Identity = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db),
):
    """Change a user's role. A super admin cannot change their own role."""
    require_fields(data.role)
    role = parse_role(data.role)

    if user_id == identity.id:
        raise InsufficientPermissionsError("Cannot change your own role")

    user = await user_service.find_user_by_id(db, user_id)
    if user is None:
        raise ResourceNotFoundError()

    previous = user.role
    user = await user_service.update_user_role(db, user, role)
    await RefreshTokenStore(db).remove_for_user(user.id)

    audit_event(
        "role_changed",
        user_id=identity.id,
        email=identity.email,
        ip_address=get_client_ip(request),
        target=user.email,
        old_role=previous.value,
        new_role=role.value,
    )

    return SuccessResponse[UserPublic](data=user_to_public(user), message="User role updated")


@router.delete("/users/{user_id}", response_model=SuccessResponse[None])
async def delete_user(
    request: Request,
    user_id: str,
    identity: Identity = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db),
):
    """Delete an account and its session. A super admin cannot delete themselves."""
    if user_id == identity.id:
        raise InsufficientPermissionsError("Cannot delete your own account")

    user = await user_service.find_user_by_id(db, user_id)
    if user is None:
        raise ResourceNotFoundError()
    email = user.email

    await RefreshTokenStore(db).remove_for_user(user_id)
    await user_service.delete_user(db, user_id)

    audit_event(
        "user_deleted",
        user_id=identity.id,
        email=identity.email,
        ip_address=get_client_ip(request),
        target=email,
    )

    return SuccessResponse[None](message="User deleted successfully")
