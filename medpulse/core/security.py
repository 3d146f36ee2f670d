"""Bearer token handling.

Tokens are issued by the external login service; this module only decodes
them into the acting identity. ``create_access_token`` exists for the login
service's shared secret setup and for tests.
"""

from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from jose import JWTError, jwt
from pydantic import ValidationError

from medpulse.config import settings
from medpulse.schemas.auth import Actor, TokenPayload, UserRole


def create_access_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a JWT access token.

    Args:
        data: Payload data to encode (``sub`` and ``role``)
        expires_delta: Optional expiration time delta

    Returns:
        Encoded JWT token
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(UTC) + expires_delta
    else:
        expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)

    to_encode.update(
        {
            "exp": expire,
            "iat": datetime.now(UTC),
            "type": "access",
        }
    )

    encoded_jwt = jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )

    return encoded_jwt


def create_actor_token(role: UserRole, user_id: UUID, expires_delta: timedelta | None = None) -> str:
    """Create an access token for a role and user id."""
    return create_access_token({"sub": str(user_id), "role": role.value}, expires_delta)


def decode_access_token(token: str) -> dict[str, Any] | None:
    """
    Decode and validate a JWT access token.

    Args:
        token: JWT token to decode

    Returns:
        Decoded payload or None if invalid
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )

        # Verify token type
        if payload.get("type") != "access":
            return None

        return payload
    except JWTError:
        return None


def actor_from_token(token: str) -> Actor | None:
    """
    Resolve the acting identity from a bearer token.

    Returns:
        Actor, or None if the token is invalid or lacks role/subject claims
    """
    payload = decode_access_token(token)
    if payload is None:
        return None

    try:
        claims = TokenPayload.model_validate(payload)
        return Actor(role=claims.role, user_id=UUID(claims.sub))
    except (ValidationError, ValueError):
        return None
