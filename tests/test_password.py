import pytest

from uniboard.auth.password import (
    generate_secure_password,
    hash_password,
    hash_password_async,
    is_valid_password,
    needs_rehash,
    verify_password,
    verify_password_async,
)
from uniboard.core.errors import WeakPasswordError


@pytest.mark.parametrize("password", ["TestPass123!", "Abcdef1@", "Zz9$zzzzzzzz"])
def test_valid_passwords(password):
    assert is_valid_password(password)


@pytest.mark.parametrize(
    "password",
    [
        "",
        "Weak1!",          # too short
        "testpass123!",    # no uppercase
        "TESTPASS123!",    # no lowercase
        "TestPassword!",   # no digit
        "TestPass1234",    # no symbol
        "TestPass123#",    # symbol outside the allowed set
    ],
)
def test_invalid_passwords(password):
    assert not is_valid_password(password)


def test_hash_and_verify():
    password_hash = hash_password("TestPass123!")
    assert password_hash.startswith("$argon2id$")
    assert "TestPass123!" not in password_hash
    assert verify_password("TestPass123!", password_hash)
    assert not verify_password("OtherPass123!", password_hash)


def test_hash_is_salted():
    first = hash_password("TestPass123!")
    second = hash_password("TestPass123!")
    assert first != second
    assert verify_password("TestPass123!", first)
    assert verify_password("TestPass123!", second)


def test_hash_rejects_weak_password():
    with pytest.raises(WeakPasswordError) as exc_info:
        hash_password("Weak1!")
    assert exc_info.value.status_code == 400
    assert exc_info.value.message.startswith("Password must")


@pytest.mark.parametrize("bad_hash", ["", "not-a-hash", "$argon2id$v=19$garbage", "$2b$12$abc"])
def test_verify_never_raises_on_malformed_hash(bad_hash):
    assert verify_password("TestPass123!", bad_hash) is False


def test_needs_rehash():
    assert not needs_rehash(hash_password("TestPass123!"))
    assert needs_rehash("not-a-hash")


def test_generated_passwords_meet_policy():
    for _ in range(20):
        password = generate_secure_password()
        assert len(password) == 16
        assert is_valid_password(password)
    assert len(generate_secure_password(4)) == 12


async def test_async_variants_match_sync():
    password_hash = await hash_password_async("TestPass123!")
    assert await verify_password_async("TestPass123!", password_hash)
    assert not await verify_password_async("Wrong123!x", password_hash)
