"""
Unit tests for password hashing and policy.
"""
import pytest

from backend.app.core.exceptions import AppError
from backend.app.services.auth_service import (
    PASSWORD_MAX_BYTES, check_password, hash_password, verify_password, validate_password,
)


@pytest.mark.parametrize("password", ["Password1!", "Sup3r$ecret", "aB3@aB3@"])
def test_strong_passwords_accepted(password):
    assert validate_password(password)


@pytest.mark.parametrize("password", [
    "",
    "Sh0rt!",          # too short
    "password1!",      # no uppercase
    "PASSWORD1!",      # no lowercase
    "Password!!",      # no digit
    "Password11",      # no special character
    "Passw0rd!#",      # '#' is outside the allowed set
])
def test_weak_passwords_rejected(password):
    assert not validate_password(password)


def test_hash_round_trip():
    hashed = hash_password("Password1!")
    assert hashed != "Password1!"
    assert verify_password("Password1!", hashed)
    assert not verify_password("Password2!", hashed)


def test_verify_against_garbage_hash_is_false():
    assert not verify_password("Password1!", "not-a-bcrypt-hash")


def test_check_password_limits_encoded_length():
    check_password("Aa1@" + "x" * (PASSWORD_MAX_BYTES - 4))
    with pytest.raises(AppError, match="at most 72 bytes"):
        check_password("Aa1@" + "x" * (PASSWORD_MAX_BYTES - 3))
