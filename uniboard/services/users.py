"""
User account persistence.

Thin async helpers over the users table used by the auth endpoints and the
authentication dependency.
"""

from typing import Optional, Sequence

from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from uniboard.models.user import User, UserRole


async def find_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == email.lower().strip()))
    return result.scalar_one_or_none()


async def find_user_by_id(db: AsyncSession, user_id: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def find_user_by_student_id(db: AsyncSession, student_id: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.student_id == student_id.upper()))
    return result.scalar_one_or_none()


async def list_users(db: AsyncSession, role: Optional[UserRole] = None) -> Sequence[User]:
    query = select(User).order_by(User.created_at.desc())
    if role is not None:
        query = query.where(User.role == role)
    result = await db.execute(query)
    return result.scalars().all()


async def create_user(
    db: AsyncSession,
    *,
    email: str,
    password_hash: str,
    role: UserRole,
    first_name: str,
    last_name: str,
    student_id: Optional[str] = None,
) -> User:
    """Insert and commit a new user."""
    user = User(
        email=email.lower().strip(),
        password_hash=password_hash,
        role=role,
        first_name=first_name,
        last_name=last_name,
        student_id=student_id if role == UserRole.STUDENT else None,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def update_user_role(db: AsyncSession, user: User, role: UserRole) -> User:
    user.role = role
    if role != UserRole.STUDENT:
        # student_id only exists for students
        user.student_id = None
    await db.commit()
    await db.refresh(user)
    return user


async def delete_user(db: AsyncSession, user_id: str) -> bool:
    result = await db.execute(delete(User).where(User.id == user_id))
    await db.commit()
    return bool(result.rowcount)


async def count_users_with_role(db: AsyncSession, role: UserRole) -> int:
    result = await db.execute(select(func.count(User.id)).where(User.role == role))
    return result.scalar() or 0
