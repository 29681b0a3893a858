"""
Error taxonomy for the auth service.

Every failure is raised where it is detected and rendered into an HTTP
response by a single exception handler registered in uniboard.main.
"""

from typing import Optional

INVALID_CREDENTIALS = "Invalid email or password"
USER_NOT_FOUND = "User not found"
USER_ALREADY_EXISTS = "User with this email already exists"
STUDENT_ID_EXISTS = "Student ID already exists"
INVALID_TOKEN = "Invalid or expired token"
INSUFFICIENT_PERMISSIONS = "Insufficient permissions"
INVALID_ROLE = "Invalid user role"
WEAK_PASSWORD = (
    "Password must be at least 8 characters with uppercase, lowercase, "
    "number, and special character"
)
INVALID_EMAIL = "Invalid email format"
INVALID_STUDENT_ID = "Student ID must be 6-12 alphanumeric characters"
MISSING_REQUIRED_FIELDS = "Missing required fields"
INVALID_REQUEST = "Invalid request"


class UniboardError(Exception):
    """Base class for errors that map to an HTTP response."""

    status_code: int = 400
    message: str = "Bad request"
    headers: Optional[dict[str, str]] = None

    def __init__(self, message: Optional[str] = None, detail: Optional[str] = None):
        self.message = message or self.message
        # detail is for logs only, never sent to the client
        self.detail = detail or self.message
        super().__init__(self.detail)


# 400 - client input faults

class MissingFieldsError(UniboardError):
    message = MISSING_REQUIRED_FIELDS


class InvalidEmailError(UniboardError):
    message = INVALID_EMAIL


class WeakPasswordError(UniboardError):
    message = WEAK_PASSWORD


class InvalidStudentIdError(UniboardError):
    message = INVALID_STUDENT_ID


class InvalidRoleError(UniboardError):
    message = INVALID_ROLE


# 401 - authentication

class AuthenticationError(UniboardError):
    status_code = 401
    message = "Authentication failed"
    headers = {"WWW-Authenticate": "Bearer"}


class InvalidCredentialsError(AuthenticationError):
    """Same response for unknown email and wrong password."""

    message = INVALID_CREDENTIALS
    headers = None


class MissingTokenError(AuthenticationError):
    message = "Access token required"


class InvalidTokenError(AuthenticationError):
    message = INVALID_TOKEN


class TokenExpiredError(InvalidTokenError):
    pass


class RefreshTokenMissingError(AuthenticationError):
    message = "Refresh token not provided"
    headers = None


class UserNotFoundError(AuthenticationError):
    message = USER_NOT_FOUND


class AuthenticationRequiredError(AuthenticationError):
    message = "Authentication required"


# 403 / 404 / 409 / 429

class InsufficientPermissionsError(UniboardError):
    status_code = 403
    message = INSUFFICIENT_PERMISSIONS


class ResourceNotFoundError(UniboardError):
    status_code = 404
    message = USER_NOT_FOUND


class UserAlreadyExistsError(UniboardError):
    status_code = 409
    message = USER_ALREADY_EXISTS


class StudentIdExistsError(UniboardError):
    status_code = 409
    message = STUDENT_ID_EXISTS


class RateLimitedError(UniboardError):
    status_code = 429
    message = "Too many login attempts. Please try again later."

    def __init__(self, retry_after: Optional[int] = None):
        super().__init__()
        self.retry_after = retry_after
        if retry_after is not None:
            self.headers = {"Retry-After": str(retry_after)}
