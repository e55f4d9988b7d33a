"""Tests for auth security functions."""

from datetime import timedelta
from uuid import uuid4

import pytest
from jose import JWTError, jwt

from coursemarket.auth.permissions import UserRole
from coursemarket.auth.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from coursemarket.config.settings import get_settings


class TestPasswordHashing:
    """Tests for password hashing functions."""

    def test_hash_password_creates_hash(self) -> None:
        """Hash should be different from plain password."""
        password = "SecureP@ssword123"
        hashed = hash_password(password)
        assert hashed != password
        assert len(hashed) > 0

    def test_hash_password_unique_hashes(self) -> None:
        """Same password should produce different hashes (due to salt)."""
        password = "SecureP@ssword123"
        assert hash_password(password) != hash_password(password)

    def test_verify_password_correct(self) -> None:
        password = "SecureP@ssword123"
        assert verify_password(password, hash_password(password)) is True

    def test_verify_password_incorrect(self) -> None:
        hashed = hash_password("SecureP@ssword123")
        assert verify_password("WrongP@ssword456", hashed) is False

    def test_verify_password_empty(self) -> None:
        hashed = hash_password("SecureP@ssword123")
        assert verify_password("", hashed) is False

    def test_verify_password_malformed_hash(self) -> None:
        """A stored value that is not an Argon2 hash never verifies."""
        assert verify_password("anything", "not-a-hash") is False

    def test_hash_is_argon2(self) -> None:
        assert hash_password("SecureP@ssword123").startswith("$argon2id$")


class TestAccessToken:
    """Tests for access token creation and decoding."""

    @staticmethod
    def _claims() -> dict[str, str]:
        return {
            "sub": str(uuid4()),
            "email": "test@example.com",
            "role": UserRole.USER.value,
        }

    def test_decode_access_token(self) -> None:
        """Should decode token and return payload."""
        data = self._claims()
        data["main_role"] = "superadmin"
        payload = decode_access_token(create_access_token(data))

        assert payload["sub"] == data["sub"]
        assert payload["email"] == data["email"]
        assert payload["role"] == UserRole.USER.value
        assert payload["main_role"] == "superadmin"
        assert payload["type"] == "access"
        assert "exp" in payload
        assert "iat" in payload

    def test_decode_access_token_expired(self) -> None:
        token = create_access_token(self._claims(), expires_delta=timedelta(seconds=-1))
        with pytest.raises(JWTError):
            decode_access_token(token)

    def test_decode_access_token_invalid(self) -> None:
        with pytest.raises(JWTError):
            decode_access_token("invalid.token.here")

    def test_decode_access_token_wrong_type(self) -> None:
        """Tokens signed with the right key but another type are rejected."""
        settings = get_settings()
        token = jwt.encode(
            {**self._claims(), "type": "refresh"},
            settings.auth_secret_key,
            algorithm=settings.auth_algorithm,
        )
        with pytest.raises(JWTError, match="expected 'access'"):
            decode_access_token(token)

    def test_decode_access_token_missing_subject(self) -> None:
        data = self._claims()
        del data["sub"]
        with pytest.raises(JWTError, match="missing subject"):
            decode_access_token(create_access_token(data))

    def test_decode_access_token_wrong_key(self) -> None:
        token = jwt.encode(
            {**self._claims(), "type": "access"},
            "some-other-secret",
            algorithm=get_settings().auth_algorithm,
        )
        with pytest.raises(JWTError):
            decode_access_token(token)

    def test_access_tokens_unique_different_users(self) -> None:
        assert create_access_token(self._claims()) != create_access_token(
            self._claims()
        )
