"""
Role-based authorization policy.

Roles form a total order: super_admin > admin > student. All checks here
are pure functions of the caller's identity and the requirement; the
FastAPI dependency wrappers live in uniboard.auth.dependencies.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Union

from uniboard.core.errors import (
    AuthenticationRequiredError,
    InsufficientPermissionsError,
    InvalidRoleError,
)
from uniboard.models.user import UserRole

RoleLike = Union[UserRole, str]

ROLE_RANK: dict[UserRole, int] = {
    UserRole.STUDENT: 1,
    UserRole.ADMIN: 2,
    UserRole.SUPER_ADMIN: 3,
}


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, as resolved for the current request."""
    id: str
    email: str
    role: UserRole
    first_name: str
    last_name: str
    student_id: Optional[str] = None


def parse_role(role: RoleLike) -> UserRole:
    try:
        return UserRole(role)
    except ValueError:
        raise InvalidRoleError()


def rank(role: RoleLike) -> int:
    return ROLE_RANK[parse_role(role)]


def has_permission(caller_role: RoleLike, required_role: RoleLike) -> bool:
    """True when caller_role is required_role or higher."""
    return rank(caller_role) >= rank(required_role)


def has_any_role(caller_role: RoleLike, allowed_roles: Iterable[RoleLike]) -> bool:
    caller = parse_role(caller_role)
    return any(
        caller == parse_role(role) or has_permission(caller, role)
        for role in allowed_roles
    )


def can_act_on(caller_id: str, caller_role: RoleLike, owner_id: str) -> bool:
    """Owners may act on their own resources; admins and above on any."""
    return caller_id == owner_id or has_permission(caller_role, UserRole.ADMIN)


def authorize_role(identity: Optional[Identity], required_role: RoleLike) -> Identity:
    if identity is None:
        raise AuthenticationRequiredError()
    if not has_permission(identity.role, required_role):
        raise InsufficientPermissionsError()
    return identity


def authorize_any_role(identity: Optional[Identity], allowed_roles: Iterable[RoleLike]) -> Identity:
    if identity is None:
        raise AuthenticationRequiredError()
    if not has_any_role(identity.role, allowed_roles):
        raise InsufficientPermissionsError()
    return identity


def authorize_owner(identity: Optional[Identity], owner_id: str) -> Identity:
    if identity is None:
        raise AuthenticationRequiredError()
    if not can_act_on(identity.id, identity.role, owner_id):
        raise InsufficientPermissionsError("Access denied: insufficient permissions")
    return identity
