"""
Session token creation and validation.
Uses python-jose for JWT handling.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from opsdash.config import get_settings


def create_access_token(
    data: Dict[str, Any],
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a session JWT.

    Args:
        data: Payload data to encode (``sub`` carries the account email)
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token
    """
    settings = get_settings()
    to_encode = data.copy()
    issued = datetime.now(timezone.utc)

    if expires_delta:
        expire = issued + expires_delta
    else:
        expire = issued + timedelta(minutes=settings.jwt_expiration_minutes)

    to_encode.update(
        {
            "exp": expire,
            "iat": issued,
            "type": "access",
        }
    )

    return jwt.encode(
        to_encode,
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate a session JWT.

    Raises:
        JWTError: If token is invalid, expired, or not an access token
    """
    settings = get_settings()

    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as e:
        raise JWTError(f"Token validation failed: {str(e)}")

    if payload.get("type") != "access":
        raise JWTError("Token validation failed: invalid token type")
    return payload


def is_authorized_email(email: str) -> bool:
    """
    Check an account against the configured authorized email.

    With no authorized email configured every account is accepted.
    """
    authorized = get_settings().authorized_email
    if not authorized:
        return True
    return email.strip().lower() == authorized.strip().lower()
