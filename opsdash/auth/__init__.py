"""Session authentication module."""

from opsdash.auth.dependencies import get_current_user
from opsdash.auth.google_identity import GoogleCredentialError, verify_google_credential
from opsdash.auth.jwt import create_access_token, decode_access_token, is_authorized_email

__all__ = [
    "GoogleCredentialError",
    "create_access_token",
    "decode_access_token",
    "get_current_user",
    "is_authorized_email",
    "verify_google_credential",
]
