"""
Google Sign-In credential verification.

The browser obtains a Google ID token from Google Identity Services and
posts it to the session endpoint. The token's signature, issuer, audience
and expiry are checked against Google's public certificates before its
email claim is trusted.
"""

from typing import Any, Dict

from google.auth.exceptions import GoogleAuthError
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from opsdash.config import get_settings
from opsdash.utils.logging import get_logger

logger = get_logger(__name__)


class GoogleCredentialError(Exception):
    """Raised when a Google ID token cannot be verified."""


class GoogleSignInNotConfiguredError(GoogleCredentialError):
    """Raised when no OAuth client ID is configured to verify tokens against."""


def verify_google_credential(credential: str) -> Dict[str, Any]:
    """
    Verify a Google ID token and return its claims.

    Args:
        credential: Encoded ID token from Google Identity Services

    Returns:
        Verified claims (``email``, ``name``, ``picture``, ...)

    Raises:
        GoogleSignInNotConfiguredError: If ``google_client_id`` is not set
        GoogleCredentialError: If the token is invalid, expired, issued for
            another client, or carries no verified email
    """
    settings = get_settings()
    if not settings.google_client_id:
        raise GoogleSignInNotConfiguredError("Google sign-in is not configured")

    try:
        claims = id_token.verify_oauth2_token(
            credential,
            google_requests.Request(),
            settings.google_client_id,
        )
    except (ValueError, GoogleAuthError) as e:
        logger.warning("google_credential_rejected", error=str(e))
        raise GoogleCredentialError(f"Invalid Google credential: {e}") from e

    if not claims.get("email"):
        raise GoogleCredentialError("Google credential carries no email")
    if claims.get("email_verified") is False:
        raise GoogleCredentialError("Google account email is not verified")
    return claims
