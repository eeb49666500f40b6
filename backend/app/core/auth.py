"""
Tubely Authentication Module

Bearer token authentication for the video API. Tokens are locally issued JWTs
signed with ``Settings.secret_key`` using an HMAC algorithm; the ``sub`` claim
carries the user identifier that owns videos.

Usage:
    ```python
    from fastapi import Depends
    from app.core.auth import get_current_user_id

    @router.get("/protected")
    async def protected_route(user_id: str = Depends(get_current_user_id)):
        return {"user_id": user_id}
    ```
"""

import logging

from datetime import UTC, datetime, timedelta
from typing import Any

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from app.config import Settings, get_settings
from app.core.exceptions import UnauthorizedError


logger = logging.getLogger(__name__)


# Missing credentials are reported by get_current_user_id, not by the scheme,
# so every 401 carries the same body and WWW-Authenticate header.
security = HTTPBearer(
    scheme_name="Bearer",
    description="Locally issued JWT bearer token.",
    auto_error=False,
)


# =============================================================================
# Local JWT Functions
# =============================================================================


def create_local_jwt(user_id: str, settings: Settings, email: str | None = None) -> str:
    """
    Create a signed bearer token for a user.

    Token claims:
    - sub: User ID (subject)
    - email: User's email address, when known
    - exp: Expiration timestamp (``jwt_expiration_hours`` from now)
    - iat: Issued at timestamp
    - type: "local"

    Args:
        user_id: The user's unique identifier.
        settings: Settings instance containing secret_key, jwt_algorithm and
                 jwt_expiration_hours.
        email: Optional email address to embed.

    Returns:
        str: The encoded JWT token string.
    """
    now = datetime.now(UTC)
    expire = now + timedelta(hours=settings.jwt_expiration_hours)

    payload: dict[str, Any] = {
        "sub": user_id,
        "exp": expire,
        "iat": now,
        "type": "local",
    }
    if email:
        payload["email"] = email

    token = jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)

    logger.info("Created local JWT for user: %s (expires: %s)", user_id, expire.isoformat())
    return token


def validate_local_jwt(token: str, settings: Settings) -> dict[str, Any]:
    """
    Verify a token's signature and expiration.

    Returns:
        dict: The decoded token payload.

    Raises:
        JWTError: If the token is malformed, expired, or signed with another key.
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        logger.warning("Local JWT has expired")
        raise
    except JWTError as e:
        logger.warning("Local JWT validation failed: %s", str(e))
        raise

    logger.debug("Local JWT validated for subject: %s", payload.get("sub", "unknown"))
    return payload


# =============================================================================
# Authentication Dependencies
# =============================================================================


def _unauthorized(message: str) -> HTTPException:
    error = UnauthorizedError(message)
    return HTTPException(
        status_code=error.status_code,
        detail={"error": error.error_code, "message": error.client_message},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    settings: Settings = Depends(get_settings),
) -> str:
    """
    Resolve the authenticated user's identifier from the bearer token.

    Args:
        credentials: Authorization credentials extracted by HTTPBearer, or None.
        settings: Application settings (injected via FastAPI dependency).

    Returns:
        str: The ``sub`` claim of a valid token.

    Raises:
        HTTPException: 401 with ``WWW-Authenticate: Bearer`` when the token is
            missing, invalid, expired, or has no subject.
    """
    if credentials is None:
        raise _unauthorized("Missing bearer token.")

    try:
        payload = validate_local_jwt(credentials.credentials, settings)
    except JWTError as e:
        raise _unauthorized("Invalid or expired token.") from e

    user_id = payload.get("sub")
    if not user_id or not isinstance(user_id, str):
        logger.warning("Token missing 'sub' claim")
        raise _unauthorized("Invalid token: missing user identifier.")

    return user_id


__all__ = [
    "create_local_jwt",
    "get_current_user_id",
    "security",
    "validate_local_jwt",
]
