import os
import sys
import tempfile

import pytest

# Add project root to sys.path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Set up environment variables before importing the app
_TEST_DB_DIR = tempfile.mkdtemp(prefix="uniboard-test-")
os.environ["ENVIRONMENT"] = "test"
os.environ["DB_DIR"] = _TEST_DB_DIR
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TEST_DB_DIR, 'api.db')}"
os.environ["JWT_SECRET"] = "test-access-secret-key-0123456789abcdef"
os.environ["JWT_REFRESH_SECRET"] = "test-refresh-secret-key-0123456789abcdef"
os.environ["RATE_LIMIT_ENABLED"] = "true"
os.environ["SEED_SUPER_ADMIN_EMAIL"] = ""

from fastapi.testclient import TestClient
from sqlalchemy import delete

from uniboard.auth.password import hash_password
from uniboard.auth.rate_limit import InMemoryLoginRateLimiter
from uniboard.core.database import async_session_maker, engine
from uniboard.main import app
from uniboard.models import RefreshToken, User, UserRole
from uniboard.services import users as user_service

STRONG_PASSWORD = "TestPass123!"


@pytest.fixture(scope="session")
def client():
    with TestClient(app) as c:
        yield c


async def _reset_db():
    async with engine.begin() as conn:
        await conn.execute(delete(RefreshToken))
        await conn.execute(delete(User))


@pytest.fixture
def api(client):
    """Test client with an empty database, no cookies and a fresh login limiter."""
    client.portal.call(_reset_db)
    app.state.login_limiter = InMemoryLoginRateLimiter(max_attempts=5, window=15 * 60)
    client.cookies.clear()
    yield client
    client.cookies.clear()


@pytest.fixture
def make_user(client):
    """Insert a user directly and return it."""

    def _make(
        email: str,
        role: UserRole = UserRole.STUDENT,
        password: str = STRONG_PASSWORD,
        student_id: str | None = None,
    ) -> User:
        async def _create():
            async with async_session_maker() as session:
                return await user_service.create_user(
                    session,
                    email=email,
                    password_hash=hash_password(password),
                    role=role,
                    first_name="Test",
                    last_name=role.value.title(),
                    student_id=student_id,
                )

        return client.portal.call(_create)

    return _make


@pytest.fixture
def login(client):
    """Log in and return the access token."""

    def _login(email: str, password: str = STRONG_PASSWORD) -> str:
        response = client.post("/api/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.json()
        return response.json()["data"]["accessToken"]

    return _login
