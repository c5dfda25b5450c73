"""
Authentication router - session token issuance for the authorized account.

A session is opened from a verified Google ID token. In development mode a
plain email is accepted instead so the dashboard can run without Google
sign-in on localhost.
"""

from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from opsdash.auth.google_identity import (
    GoogleCredentialError,
    GoogleSignInNotConfiguredError,
    verify_google_credential,
)
from opsdash.auth.jwt import create_access_token, is_authorized_email
from opsdash.config import get_settings
from opsdash.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


class SessionRequest(BaseModel):
    """Session request: a Google ID token, or an email in development mode."""

    credential: Optional[str] = Field(default=None, description="Google ID token")
    email: Optional[str] = Field(default=None, description="Account email (development mode only)")
    name: str = Field(default="", description="Display name (development mode only)")


class TokenResponse(BaseModel):
    """Session token response."""

    access_token: str
    token_type: str
    expires_in: int
    email: str


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


@router.post("/session", response_model=TokenResponse)
async def create_session(request: SessionRequest):
    """
    Open a session for an account.

    The email comes from the verified Google credential. Only the configured
    authorized email may sign in; with none configured any Google account is
    accepted.
    """
    settings = get_settings()

    if request.credential:
        try:
            claims = verify_google_credential(request.credential)
        except GoogleSignInNotConfiguredError as e:
            logger.error("google_sign_in_not_configured")
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
        except GoogleCredentialError as e:
            raise _unauthorized(str(e))
        email = claims["email"]
        name = claims.get("name") or ""
    elif settings.dev_mode and request.email:
        logger.warning("dev_session_without_google", email=request.email)
        email = request.email
        name = request.name
    else:
        logger.warning("session_rejected", reason="missing_credential")
        raise _unauthorized("A Google sign-in credential is required")

    if not settings.authorized_email:
        logger.warning("authorized_email_not_configured")
    if not is_authorized_email(email):
        logger.warning("session_rejected", reason="unauthorized_account", email=email)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Access denied. {email} is not authorized.",
        )

    access_token = create_access_token(
        data={"sub": email, "name": name},
        expires_delta=timedelta(minutes=settings.jwt_expiration_minutes),
    )

    logger.info("session_opened", email=email)

    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in=settings.jwt_expiration_minutes * 60,
        email=email,
    )


@router.post("/logout")
async def logout():
    """
    Logout endpoint.
    Sessions are stateless; the client discards its token.
    """
    logger.info("user_logout")
    return {"success": True, "message": "Logged out successfully"}
