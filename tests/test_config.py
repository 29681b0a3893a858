import pytest

from uniboard.core.config import ConfigurationError, validate_auth_secrets

STRONG_A = "a" * 40
STRONG_B = "b" * 40


def test_secrets_must_differ():
    with pytest.raises(ConfigurationError):
        validate_auth_secrets(STRONG_A, STRONG_A, production=False)


def test_development_accepts_short_secrets():
    validate_auth_secrets("dev-access-secret", "dev-refresh-secret", production=False)


@pytest.mark.parametrize(
    "access, refresh",
    [
        ("dev-access-secret", STRONG_B),
        (STRONG_A, "dev-refresh-secret"),
        ("short", STRONG_B),
    ],
)
def test_production_rejects_weak_or_default_secrets(access, refresh):
    with pytest.raises(ConfigurationError):
        validate_auth_secrets(access, refresh, production=True)


def test_production_accepts_strong_distinct_secrets():
    validate_auth_secrets(STRONG_A, STRONG_B, production=True)
