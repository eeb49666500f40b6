"""
Tubely Authentication Module Test Suite

Tests for backend/app/core/auth.py covering:
- Local JWT generation with sub/exp/iat/type claims
- Token validation: signature, expiration and malformed input
- The get_current_user_id dependency and its 401 responses
"""

from datetime import UTC, datetime, timedelta

import pytest

from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from jose import JWTError, jwt

from conftest import TEST_USER_ID

from app.config import Settings
from app.core.auth import create_local_jwt, get_current_user_id, validate_local_jwt


def bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


# =============================================================================
# Local JWT Creation
# =============================================================================


class TestLocalJWTCreation:
    """Test local JWT token generation."""

    def test_create_local_jwt(self, mock_settings: Settings) -> None:
        """Created tokens carry sub, exp, iat and a 'local' type."""
        token = create_local_jwt(TEST_USER_ID, mock_settings)

        payload = jwt.decode(token, mock_settings.secret_key, algorithms=["HS256"])

        assert payload["sub"] == TEST_USER_ID
        assert payload["type"] == "local"
        assert "exp" in payload
        assert "iat" in payload
        assert "email" not in payload

    def test_create_local_jwt_with_email(self, mock_settings: Settings) -> None:
        token = create_local_jwt(TEST_USER_ID, mock_settings, email="hiker@example.com")

        payload = jwt.decode(token, mock_settings.secret_key, algorithms=["HS256"])
        assert payload["email"] == "hiker@example.com"

    def test_create_local_jwt_expiration(self, mock_settings: Settings) -> None:
        """Tokens expire jwt_expiration_hours after issue."""
        now = datetime.now(UTC)
        token = create_local_jwt(TEST_USER_ID, mock_settings)

        payload = jwt.decode(token, mock_settings.secret_key, algorithms=["HS256"])
        expires = datetime.fromtimestamp(payload["exp"], tz=UTC)

        expected = now + timedelta(hours=mock_settings.jwt_expiration_hours)
        assert abs((expires - expected).total_seconds()) < 5


# =============================================================================
# Local JWT Validation
# =============================================================================


class TestLocalJWTValidation:
    """Test local JWT token validation."""

    def test_validate_local_jwt_valid_token(self, mock_settings: Settings) -> None:
        token = create_local_jwt(TEST_USER_ID, mock_settings)

        assert validate_local_jwt(token, mock_settings)["sub"] == TEST_USER_ID

    def test_validate_local_jwt_expired_token(self, mock_settings: Settings) -> None:
        expired = jwt.encode(
            {"sub": TEST_USER_ID, "exp": datetime.now(UTC) - timedelta(hours=1)},
            mock_settings.secret_key,
            algorithm="HS256",
        )

        with pytest.raises(JWTError):
            validate_local_jwt(expired, mock_settings)

    def test_validate_local_jwt_invalid_signature(self, mock_settings: Settings) -> None:
        forged = jwt.encode(
            {"sub": TEST_USER_ID, "exp": datetime.now(UTC) + timedelta(hours=1)},
            "some-other-secret-key-that-is-long-enough",
            algorithm="HS256",
        )

        with pytest.raises(JWTError):
            validate_local_jwt(forged, mock_settings)

    def test_validate_local_jwt_malformed_token(self, mock_settings: Settings) -> None:
        with pytest.raises(JWTError):
            validate_local_jwt("not.a.jwt", mock_settings)


# =============================================================================
# get_current_user_id Dependency
# =============================================================================


class TestGetCurrentUserId:
    """Test the bearer token dependency."""

    @pytest.mark.asyncio
    async def test_valid_token_returns_subject(self, mock_settings: Settings) -> None:
        token = create_local_jwt(TEST_USER_ID, mock_settings)

        assert await get_current_user_id(bearer(token), mock_settings) == TEST_USER_ID

    @pytest.mark.asyncio
    async def test_missing_credentials_raise_401(self, mock_settings: Settings) -> None:
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user_id(None, mock_settings)

        assert exc_info.value.status_code == 401
        assert exc_info.value.headers == {"WWW-Authenticate": "Bearer"}
        assert exc_info.value.detail["error"] == "unauthorized"

    @pytest.mark.asyncio
    async def test_invalid_token_raises_401(self, mock_settings: Settings) -> None:
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user_id(bearer("garbage"), mock_settings)

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_missing_sub_claim_raises_401(self, mock_settings: Settings) -> None:
        token = jwt.encode(
            {"exp": datetime.now(UTC) + timedelta(hours=1), "type": "local"},
            mock_settings.secret_key,
            algorithm="HS256",
        )

        with pytest.raises(HTTPException) as exc_info:
            await get_current_user_id(bearer(token), mock_settings)

        assert exc_info.value.status_code == 401
        assert "user identifier" in exc_info.value.detail["message"]
