"""
Authentication endpoints.

Provides:
- Student registration
- Login (email/password -> access token + refresh cookie)
- Access token refresh from the refresh cookie
- Logout
- Current user profile
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from uniboard.auth.dependencies import get_client_ip, get_current_identity
from uniboard.auth.jwt import TokenService, get_token_service, hash_token
from uniboard.auth.password import (
    hash_password_async,
    is_valid_password,
    needs_rehash,
    verify_password_async,
)
from uniboard.auth.policy import Identity
from uniboard.auth.rate_limit import LoginRateLimiter, get_login_limiter
from uniboard.auth.refresh_store import RefreshTokenStore
from uniboard.core.config import (
    API_PREFIX,
    REFRESH_COOKIE_NAME,
    AuthSettings,
    get_auth_settings,
)
from uniboard.core.database import get_db
from uniboard.core.errors import (
    InvalidCredentialsError,
    InvalidTokenError,
    RefreshTokenMissingError,
    StudentIdExistsError,
    UserAlreadyExistsError,
    UserNotFoundError,
    WeakPasswordError,
)
from uniboard.core.logging_setup import audit_event
from uniboard.core.validators import (
    normalize_email,
    normalize_student_id,
    require_fields,
    sanitize_input,
)
from uniboard.models.user import User, UserRole
from uniboard.schemas.auth import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    TokenRefreshResponse,
)
from uniboard.schemas.common import SuccessResponse
from uniboard.schemas.user import UserPublic, user_to_public
from uniboard.services import users as user_service

router = APIRouter()


def set_refresh_cookie(response: Response, refresh_token: str, settings: AuthSettings) -> None:
    """Set the refresh token as an HttpOnly, SameSite=Strict cookie scoped to the API."""
    response.set_cookie(
        key=REFRESH_COOKIE_NAME,
        value=refresh_token,
        httponly=True,
        secure=settings.secure_cookies,
        samesite="strict",
        max_age=settings.refresh_token_expire_days * 24 * 60 * 60,
        path=API_PREFIX,
    )


def clear_refresh_cookie(response: Response, settings: AuthSettings) -> None:
    response.delete_cookie(
        key=REFRESH_COOKIE_NAME,
        path=API_PREFIX,
        httponly=True,
        secure=settings.secure_cookies,
        samesite="strict",
    )


async def start_session(
    user: User,
    response: Response,
    db: AsyncSession,
    tokens: TokenService,
    settings: AuthSettings,
) -> AuthResponse:
    """Issue both tokens, persist the refresh token and set the cookie."""
    access_token = tokens.issue_access_token(user.id, user.email, user.role.value)
    refresh_token = tokens.issue_refresh_token(user.id)

    store = RefreshTokenStore(db, ttl=tokens.refresh_ttl)
    await store.store(user.id, hash_token(refresh_token))

    set_refresh_cookie(response, refresh_token, settings)
    return AuthResponse(user=user_to_public(user), access_token=access_token)


@router.post(
    "/register",
    response_model=SuccessResponse[AuthResponse],
    status_code=status.HTTP_201_CREATED,
)
async def register(
    request: Request,
    data: RegisterRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
    settings: AuthSettings = Depends(get_auth_settings),
):
    """
    Register a new student account.

    Public registration always creates students; admins are created by a
    super admin.
    """
    require_fields(data.email, data.password, data.first_name, data.last_name, data.student_id)

    email = normalize_email(data.email)
    if not is_valid_password(data.password):
        raise WeakPasswordError()
    student_id = normalize_student_id(data.student_id)

    if await user_service.find_user_by_email(db, email):
        raise UserAlreadyExistsError()
    if await user_service.find_user_by_student_id(db, student_id):
        raise StudentIdExistsError()

    password_hash = await hash_password_async(data.password)

    try:
        user = await user_service.create_user(
            db,
            email=email,
            password_hash=password_hash,
            role=UserRole.STUDENT,
            first_name=sanitize_input(data.first_name),
            last_name=sanitize_input(data.last_name),
            student_id=student_id,
        )
    except IntegrityError:
        # Lost a race with a concurrent registration
        await db.rollback()
        if await user_service.find_user_by_student_id(db, student_id):
            raise StudentIdExistsError()
        raise UserAlreadyExistsError()

    auth = await start_session(user, response, db, tokens, settings)

    audit_event("register", user_id=user.id, email=user.email, ip_address=get_client_ip(request))

    return SuccessResponse[AuthResponse](data=auth, message="User registered successfully")


@router.post("/login", response_model=SuccessResponse[AuthResponse])
async def login(
    request: Request,
    data: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
    settings: AuthSettings = Depends(get_auth_settings),
    limiter: LoginRateLimiter = Depends(get_login_limiter),
):
    """
    Authenticate a user of any role.

    Returns the access token in the body and sets the refresh token as an
    HttpOnly cookie. Unknown email and wrong password yield the same error.
    """
    require_fields(data.email, data.password)

    client_ip = get_client_ip(request)
    await limiter.hit(client_ip)

    email = data.email.lower().strip()
    user = await user_service.find_user_by_email(db, email)
    if user is None or not await verify_password_async(data.password, user.password_hash):
        audit_event(
            "login_failure",
            user_id=user.id if user else None,
            email=email,
            ip_address=client_ip,
            success=False,
        )
        raise InvalidCredentialsError()

    await limiter.reset(client_ip)

    # Upgrade hashes made with older parameters
    if needs_rehash(user.password_hash):
        user.password_hash = await hash_password_async(data.password)
        await db.commit()

    auth = await start_session(user, response, db, tokens, settings)

    audit_event("login_success", user_id=user.id, email=user.email, ip_address=client_ip)

    return SuccessResponse[AuthResponse](data=auth, message="Login successful")


@router.post("/refresh", response_model=SuccessResponse[TokenRefreshResponse])
async def refresh(
    request: Request,
    db: AsyncSession = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
):
    """
    Issue a new access token from the refresh cookie.

    The refresh token itself is not rotated here; it is replaced only at
    login and registration.
    """
    refresh_token = request.cookies.get(REFRESH_COOKIE_NAME)
    if not refresh_token:
        raise RefreshTokenMissingError()

    user_id = tokens.verify_refresh_token(refresh_token)

    store = RefreshTokenStore(db, ttl=tokens.refresh_ttl)
    if not await store.verify(user_id, hash_token(refresh_token)):
        raise InvalidTokenError("Invalid refresh token", detail="Refresh token not found or expired")

    user = await user_service.find_user_by_id(db, user_id)
    if user is None:
        raise UserNotFoundError()

    access_token = tokens.issue_access_token(user.id, user.email, user.role.value)

    return SuccessResponse[TokenRefreshResponse](
        data=TokenRefreshResponse(access_token=access_token),
        message="Token refreshed successfully",
    )


@router.post("/logout", response_model=SuccessResponse[None])
async def logout(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
    settings: AuthSettings = Depends(get_auth_settings),
):
    """Invalidate the refresh token (if any) and clear the cookie. Idempotent."""
    refresh_token: Optional[str] = request.cookies.get(REFRESH_COOKIE_NAME)
    if refresh_token:
        await RefreshTokenStore(db).remove(hash_token(refresh_token))

    clear_refresh_cookie(response, settings)

    audit_event("logout", ip_address=get_client_ip(request), had_session=bool(refresh_token))

    return SuccessResponse[None](message="Logout successful")


@router.get("/me", response_model=SuccessResponse[UserPublic])
async def me(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    """Get the current user's profile."""
    user = await user_service.find_user_by_id(db, identity.id)
    if user is None:
        raise UserNotFoundError()
    return SuccessResponse[UserPublic](data=user_to_public(user))
