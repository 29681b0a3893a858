import pytest

from uniboard.auth.policy import (
    ROLE_RANK,
    Identity,
    authorize_any_role,
    authorize_owner,
    authorize_role,
    can_act_on,
    has_any_role,
    has_permission,
)
from uniboard.core.errors import (
    AuthenticationRequiredError,
    InsufficientPermissionsError,
    InvalidRoleError,
)
from uniboard.models.user import UserRole


def identity(role: UserRole, user_id: str = "u1") -> Identity:
    return Identity(id=user_id, email=f"{user_id}@u.edu", role=role, first_name="A", last_name="B")


def test_role_ranks_are_totally_ordered():
    assert ROLE_RANK[UserRole.STUDENT] < ROLE_RANK[UserRole.ADMIN] < ROLE_RANK[UserRole.SUPER_ADMIN]


@pytest.mark.parametrize(
    "caller, required, expected",
    [
        ("admin", "student", True),
        ("student", "admin", False),
        ("super_admin", "super_admin", True),
        ("super_admin", "student", True),
        ("admin", "super_admin", False),
        ("student", "student", True),
    ],
)
def test_has_permission(caller, required, expected):
    assert has_permission(caller, required) is expected


def test_has_permission_accepts_enum_members():
    assert has_permission(UserRole.ADMIN, UserRole.STUDENT)


def test_unknown_role_is_rejected():
    with pytest.raises(InvalidRoleError):
        has_permission("janitor", "student")


def test_has_any_role():
    assert has_any_role("admin", ["admin", "super_admin"])
    assert has_any_role("super_admin", ["admin"])
    assert not has_any_role("student", ["admin", "super_admin"])
    assert not has_any_role("admin", [])


def test_can_act_on():
    assert can_act_on("u1", "student", "u1")
    assert not can_act_on("u1", "student", "u2")
    assert can_act_on("u1", "admin", "u2")
    assert can_act_on("u1", "super_admin", "u2")


def test_missing_identity_fails_closed():
    with pytest.raises(AuthenticationRequiredError):
        authorize_role(None, UserRole.STUDENT)
    with pytest.raises(AuthenticationRequiredError):
        authorize_any_role(None, [UserRole.STUDENT])
    with pytest.raises(AuthenticationRequiredError):
        authorize_owner(None, "u1")


def test_insufficient_role():
    with pytest.raises(InsufficientPermissionsError) as exc_info:
        authorize_role(identity(UserRole.STUDENT), UserRole.ADMIN)
    assert exc_info.value.status_code == 403

    with pytest.raises(InsufficientPermissionsError):
        authorize_any_role(identity(UserRole.ADMIN), [UserRole.SUPER_ADMIN])

    with pytest.raises(InsufficientPermissionsError):
        authorize_owner(identity(UserRole.STUDENT, "u1"), "u2")


def test_authorized_identity_is_returned():
    caller = identity(UserRole.ADMIN)
    assert authorize_role(caller, UserRole.STUDENT) is caller
    assert authorize_any_role(caller, [UserRole.ADMIN, UserRole.SUPER_ADMIN]) is caller
    assert authorize_owner(caller, "someone-else") is caller
