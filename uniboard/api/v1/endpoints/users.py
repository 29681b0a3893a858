"""
User profile endpoints.

A student may read only their own profile; admins and super admins may read
any profile.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from uniboard.auth.dependencies import require_ownership
from uniboard.auth.policy import Identity
from uniboard.core.database import get_db
from uniboard.core.errors import ResourceNotFoundError
from uniboard.schemas.common import SuccessResponse
from uniboard.schemas.user import UserPublic, user_to_public
from uniboard.services import users as user_service

router = APIRouter()


@router.get("/{user_id}", response_model=SuccessResponse[UserPublic])
async def get_user(
    user_id: str,
    identity: Identity = Depends(require_ownership("user_id")),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.find_user_by_id(db, user_id)
    if user is None:
        raise ResourceNotFoundError()
    return SuccessResponse[UserPublic](data=user_to_public(user))
