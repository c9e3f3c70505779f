"""Google OAuth session used by the sheets clients."""

from sheetstore.google.exceptions import (
    CredentialsNotFoundError,
    GoogleAuthError,
    ScopeMismatchError,
    TokenError,
)
from sheetstore.google.oauth import SCOPES, GoogleOAuth

__all__ = [
    "GoogleOAuth",
    "SCOPES",
    "GoogleAuthError",
    "CredentialsNotFoundError",
    "TokenError",
    "ScopeMismatchError",
]
