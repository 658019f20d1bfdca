"""
Unit tests for password hashing, tokens and date parsing.
"""

from datetime import date, datetime, timedelta

import pytest

from libris.circulation.dates import parse_iso_date
from libris.errors import AuthenticationError, InvalidDateError
from libris.security import TokenIdentityGate, get_password_hash, verify_password


class TestPasswords:

    def test_hash_roundtrip(self):
        hashed = get_password_hash("secret123")

        assert hashed != "secret123"
        assert verify_password("secret123", hashed)
        assert not verify_password("wrong", hashed)


class TestTokenIdentityGate:

    @pytest.fixture
    def gate(self):
        return TokenIdentityGate(secret_key="unit-test-secret")

    def test_verify_returns_subject(self, gate):
        token = gate.create_access_token("user-42")

        assert gate.verify(token) == "user-42"

    def test_expired_token(self, gate):
        token = gate.create_access_token("user-42", expires_delta=timedelta(seconds=-10))

        with pytest.raises(AuthenticationError):
            gate.verify(token)

    def test_wrong_secret(self, gate):
        token = TokenIdentityGate(secret_key="someone-else").create_access_token("user-42")

        with pytest.raises(AuthenticationError) as exc_info:
            gate.verify(token)
        assert exc_info.value.status_code == 401

    @pytest.mark.parametrize("token", ["", "not-a-jwt"])
    def test_garbage(self, gate, token):
        with pytest.raises(AuthenticationError):
            gate.verify(token)


class TestParseIsoDate:

    def test_string(self):
        assert parse_iso_date("2024-02-29") == date(2024, 2, 29)

    def test_date_and_datetime_pass_through(self):
        assert parse_iso_date(date(2025, 1, 2)) == date(2025, 1, 2)
        assert parse_iso_date(datetime(2025, 1, 2, 10, 30)) == date(2025, 1, 2)

    @pytest.mark.parametrize("value", ["2023-02-29", "2025-1-2", "2025-01-02T00:00:00", 20250102])
    def test_rejected(self, value):
        with pytest.raises(InvalidDateError):
            parse_iso_date(value, "return date")
