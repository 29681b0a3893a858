from datetime import timedelta

import pytest
from jose import jwt

from uniboard.auth.jwt import (
    TokenService,
    extract_bearer,
    get_token_expiration,
    hash_token,
    is_token_expired,
)
from uniboard.core.errors import InvalidTokenError, TokenExpiredError

ACCESS_SECRET = "unit-access-secret-0123456789abcdef"
REFRESH_SECRET = "unit-refresh-secret-0123456789abcdef"


@pytest.fixture
def tokens():
    return TokenService(ACCESS_SECRET, REFRESH_SECRET)


def test_access_token_round_trip(tokens):
    token = tokens.issue_access_token("user-1", "a@u.edu", "admin")
    claims = tokens.verify_access_token(token)

    assert claims.user_id == "user-1"
    assert claims.email == "a@u.edu"
    assert claims.role == "admin"
    assert claims.expires_at - claims.issued_at == timedelta(minutes=15)


def test_access_token_claims_shape(tokens):
    token = tokens.issue_access_token("user-1", "a@u.edu", "student")
    claims = jwt.get_unverified_claims(token)

    assert claims["sub"] == "user-1"
    assert claims["type"] == "access"
    assert claims["iss"] == "uniboard-api"
    assert claims["aud"] == "uniboard-client"
    assert claims["exp"] == claims["iat"] + 15 * 60


def test_refresh_token_round_trip(tokens):
    token = tokens.issue_refresh_token("user-1")
    assert tokens.verify_refresh_token(token) == "user-1"

    claims = jwt.get_unverified_claims(token)
    assert claims["type"] == "refresh"
    assert "email" not in claims and "role" not in claims
    assert claims["exp"] - claims["iat"] == 7 * 24 * 60 * 60


def test_refresh_tokens_are_unique(tokens):
    assert tokens.issue_refresh_token("user-1") != tokens.issue_refresh_token("user-1")


def test_expired_access_token():
    expired = TokenService(ACCESS_SECRET, REFRESH_SECRET, access_ttl=timedelta(seconds=-10))
    token = expired.issue_access_token("user-1", "a@u.edu", "student")

    with pytest.raises(TokenExpiredError):
        expired.verify_access_token(token)


def test_expired_refresh_token():
    expired = TokenService(ACCESS_SECRET, REFRESH_SECRET, refresh_ttl=timedelta(seconds=-10))
    token = expired.issue_refresh_token("user-1")

    with pytest.raises(TokenExpiredError):
        expired.verify_refresh_token(token)


def test_access_token_signed_with_other_secret(tokens):
    other = TokenService("some-other-secret-0123456789abcdef", REFRESH_SECRET)
    token = other.issue_access_token("user-1", "a@u.edu", "student")

    with pytest.raises(InvalidTokenError) as exc_info:
        tokens.verify_access_token(token)
    assert not isinstance(exc_info.value, TokenExpiredError)


def test_wrong_issuer_and_audience(tokens):
    foreign_issuer = TokenService(ACCESS_SECRET, REFRESH_SECRET, issuer="someone-else")
    foreign_audience = TokenService(ACCESS_SECRET, REFRESH_SECRET, audience="someone-else")

    with pytest.raises(InvalidTokenError):
        tokens.verify_access_token(foreign_issuer.issue_access_token("u", "a@u.edu", "student"))
    with pytest.raises(InvalidTokenError):
        tokens.verify_access_token(foreign_audience.issue_access_token("u", "a@u.edu", "student"))


@pytest.mark.parametrize("garbage", ["", "abc", "a.b.c", "Bearer xyz"])
def test_malformed_tokens(tokens, garbage):
    with pytest.raises(InvalidTokenError):
        tokens.verify_access_token(garbage)
    with pytest.raises(InvalidTokenError):
        tokens.verify_refresh_token(garbage)


def test_refresh_token_rejected_as_access_token(tokens):
    refresh = tokens.issue_refresh_token("user-1")
    with pytest.raises(InvalidTokenError):
        tokens.verify_access_token(refresh)


def test_access_token_rejected_as_refresh_token(tokens):
    access = tokens.issue_access_token("user-1", "a@u.edu", "student")
    with pytest.raises(InvalidTokenError):
        tokens.verify_refresh_token(access)


def test_type_claim_checked_even_with_shared_secret():
    shared = TokenService(ACCESS_SECRET, ACCESS_SECRET)

    with pytest.raises(InvalidTokenError) as exc_info:
        shared.verify_access_token(shared.issue_refresh_token("user-1"))
    assert "Invalid token type" in exc_info.value.detail

    with pytest.raises(InvalidTokenError):
        shared.verify_refresh_token(shared.issue_access_token("user-1", "a@u.edu", "student"))


@pytest.mark.parametrize(
    "header, expected",
    [
        ("Bearer abc.def.ghi", "abc.def.ghi"),
        (None, None),
        ("", None),
        ("Bearer", None),
        ("Bearer ", None),
        ("Basic dXNlcjpwYXNz", None),
        ("bearer abc", None),
    ],
)
def test_extract_bearer(header, expected):
    assert extract_bearer(header) == expected


def test_hash_token():
    digest = hash_token("some-token")
    assert len(digest) == 64
    assert digest == hash_token("some-token")
    assert digest != hash_token("other-token")


def test_token_expiration_helpers(tokens):
    token = tokens.issue_access_token("user-1", "a@u.edu", "student")
    assert get_token_expiration(token) is not None
    assert not is_token_expired(token)

    expired = TokenService(ACCESS_SECRET, REFRESH_SECRET, access_ttl=timedelta(seconds=-10))
    assert is_token_expired(expired.issue_access_token("user-1", "a@u.edu", "student"))
    assert is_token_expired("garbage")
    assert get_token_expiration("garbage") is None
