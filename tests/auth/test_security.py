"""Tests for access token validation."""

from datetime import timedelta
from uuid import uuid4

import pytest
from jose import JWTError, jwt

from edutrack.auth.permissions import UserRole
from edutrack.auth.security import create_access_token, decode_access_token
from edutrack.config.settings import get_settings


class TestAccessToken:
    """Tests for access token creation and decoding."""

    def test_decode_access_token(self) -> None:
        """Should decode token and return payload."""
        user_id = uuid4()
        data = {
            "sub": str(user_id),
            "email": "aluno@example.com",
            "role": UserRole.STUDENT.value,
        }
        token = create_access_token(data)
        payload = decode_access_token(token)

        assert payload["sub"] == str(user_id)
        assert payload["email"] == "aluno@example.com"
        assert payload["role"] == UserRole.STUDENT.value
        assert payload["type"] == "access"
        assert "exp" in payload
        assert "iat" in payload

    def test_decode_access_token_expired(self) -> None:
        """Should raise JWTError for expired token."""
        token = create_access_token(
            {"sub": str(uuid4())}, expires_delta=timedelta(seconds=-1)
        )

        with pytest.raises(JWTError):
            decode_access_token(token)

    def test_decode_access_token_invalid(self) -> None:
        """Should raise JWTError for invalid token."""
        with pytest.raises(JWTError):
            decode_access_token("invalid.token.here")

    def test_decode_access_token_wrong_type(self) -> None:
        """Should raise JWTError if token type is not 'access'."""
        settings = get_settings()
        token = jwt.encode(
            {"sub": str(uuid4()), "type": "refresh"},
            settings.auth_secret_key,
            algorithm=settings.auth_algorithm,
        )

        with pytest.raises(JWTError, match="expected 'access'"):
            decode_access_token(token)

    def test_decode_access_token_without_subject(self) -> None:
        """Tokens must identify the user."""
        token = create_access_token({"email": "aluno@example.com"})

        with pytest.raises(JWTError, match="sub"):
            decode_access_token(token)

    def test_decode_access_token_wrong_key(self) -> None:
        """Tokens signed by someone else are rejected."""
        token = jwt.encode(
            {"sub": str(uuid4()), "type": "access"},
            "another-secret-key-that-is-long-enough!!",
            algorithm="HS256",
        )

        with pytest.raises(JWTError):
            decode_access_token(token)
