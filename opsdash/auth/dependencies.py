"""
FastAPI dependencies for authentication.
"""

from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from opsdash.auth.jwt import decode_access_token, is_authorized_email
from opsdash.utils.logging import get_logger

logger = get_logger(__name__)
security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """
    Extract and validate the session account from the bearer token.

    Returns:
        Account email

    Raises:
        HTTPException: If the token is missing, invalid, or for an account
            that is no longer authorized
    """
    if not credentials:
        logger.warning("auth_failed", reason="missing_token")
        raise _unauthorized("Missing authentication token")

    try:
        payload = decode_access_token(credentials.credentials)
    except JWTError as e:
        logger.warning("auth_failed", reason="invalid_token", error=str(e))
        raise _unauthorized(f"Invalid authentication token: {str(e)}")

    email: Optional[str] = payload.get("sub")
    if not email:
        logger.warning("auth_failed", reason="missing_subject")
        raise _unauthorized("Invalid token payload")

    if not is_authorized_email(email):
        logger.warning("auth_failed", reason="unauthorized_account", email=email)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account not authorized")

    logger.debug("auth_success", email=email)
    return email
