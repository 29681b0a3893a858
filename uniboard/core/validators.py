"""
Input validation and sanitization for account fields.
"""

import re
from typing import Optional

from uniboard.core.errors import (
    InvalidEmailError,
    InvalidStudentIdError,
    MissingFieldsError,
)

EMAIL_REGEX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
STUDENT_ID_REGEX = re.compile(r"^[A-Z0-9]{6,12}$")


def sanitize_input(value: str) -> str:
    """Trim whitespace and strip angle brackets."""
    return re.sub(r"[<>]", "", value.strip())


def is_valid_email(email: str) -> bool:
    return EMAIL_REGEX.match(email) is not None


def normalize_email(email: str) -> str:
    """Sanitize and lower-case an email, raising InvalidEmailError if malformed."""
    email = sanitize_input(email).lower()
    if not is_valid_email(email):
        raise InvalidEmailError()
    return email


def normalize_student_id(student_id: str) -> str:
    """Upper-case a student id, raising InvalidStudentIdError if malformed."""
    student_id = sanitize_input(student_id).upper()
    if not STUDENT_ID_REGEX.match(student_id):
        raise InvalidStudentIdError()
    return student_id


def require_fields(*values: Optional[str]) -> None:
    """Raise MissingFieldsError if any value is None or blank."""
    if any(value is None or not str(value).strip() for value in values):
        raise MissingFieldsError()
