from dataclasses import replace
from typing import Optional

import pytest
from fastapi import Depends

from uniboard.auth.dependencies import get_optional_identity
from uniboard.auth.jwt import TokenService
from uniboard.auth.policy import Identity
from uniboard.core.config import get_auth_settings
from uniboard.core.database import async_session_maker
from uniboard.main import app
from uniboard.models import UserRole
from uniboard.services import users as user_service

WHOAMI_PATH = "/whoami-optional"


async def whoami(identity: Optional[Identity] = Depends(get_optional_identity)):
    if identity is None:
        return {"authenticated": False}
    return {"authenticated": True, "id": identity.id, "role": identity.role.value}


@pytest.fixture(scope="module", autouse=True)
def whoami_route():
    app.add_api_route(WHOAMI_PATH, whoami)
    yield
    app.router.routes[:] = [r for r in app.router.routes if getattr(r, "path", None) != WHOAMI_PATH]


def whoami_with(api, authorization=None):
    headers = {"Authorization": authorization} if authorization else {}
    response = api.get(WHOAMI_PATH, headers=headers)
    assert response.status_code == 200
    return response.json()


def test_anonymous_without_header(api):
    assert whoami_with(api) == {"authenticated": False}


def test_identity_from_valid_token(api, make_user, login):
    user = make_user("admin@u.edu", role=UserRole.ADMIN)
    token = login("admin@u.edu")

    assert whoami_with(api, f"Bearer {token}") == {
        "authenticated": True,
        "id": user.id,
        "role": "admin",
    }


@pytest.mark.parametrize("authorization", ["Bearer not-a-jwt", "Basic dXNlcjpwYXNz", "Bearer "])
def test_anonymous_with_unusable_header(api, authorization):
    assert whoami_with(api, authorization) == {"authenticated": False}


def test_anonymous_with_expired_token(api, make_user):
    user = make_user("a@u.edu", student_id="STU123456")
    expired = TokenService.from_settings(replace(get_auth_settings(), access_token_expire_minutes=-1))
    token = expired.issue_access_token(user.id, user.email, user.role.value)

    assert whoami_with(api, f"Bearer {token}") == {"authenticated": False}


def test_anonymous_after_account_deleted(api, make_user, login):
    user = make_user("a@u.edu", student_id="STU123456")
    token = login("a@u.edu")

    async def _delete():
        async with async_session_maker() as session:
            await user_service.delete_user(session, user.id)

    api.portal.call(_delete)

    assert whoami_with(api, f"Bearer {token}") == {"authenticated": False}
