"""Google OAuth management using Authlib.

This module provides OAuth 2.0 authentication for the Sheets and Drive APIs with:
- Automatic token refresh with scope preservation
- Secure token storage and loading
- Interactive authorization (sign-in) and revocation (sign-out)
- Sign-in state listeners
- Google API service creation and raw authorized requests

Credentials are stored in the sheetstore home directory by default:
    google/credentials.json - OAuth client credentials
    google/token.json       - OAuth tokens
"""

import json
import logging
import webbrowser
from collections.abc import Callable
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from authlib.integrations.requests_client import OAuth2Session
from authlib.oauth2 import OAuth2Error
from google.oauth2.credentials import Credentials as GoogleCredentials
from googleapiclient.discovery import build

from sheetstore.config import GOOGLE_CREDENTIALS, GOOGLE_TOKEN
from sheetstore.google.exceptions import (
    CredentialsNotFoundError,
    ScopeMismatchError,
    TokenError,
)

logger = logging.getLogger(__name__)


SCOPES = {
    "sheets": "https://www.googleapis.com/auth/spreadsheets",
    "sheets_readonly": "https://www.googleapis.com/auth/spreadsheets.readonly",
    "drive": "https://www.googleapis.com/auth/drive",
    "drive_readonly": "https://www.googleapis.com/auth/drive.readonly",
    "drive_file": "https://www.googleapis.com/auth/drive.file",
    "openid": "openid",
    "email": "https://www.googleapis.com/auth/userinfo.email",
    "profile": "https://www.googleapis.com/auth/userinfo.profile",
}

SignInListener = Callable[[bool], None]


class GoogleOAuth:
    """Google OAuth management using Authlib.

    Handles the OAuth 2.0 authorization flow, token management, sign-in
    listeners and Google API service creation.

    Example:
        >>> auth = GoogleOAuth(scopes=["sheets", "openid", "email", "profile"])
        >>> auth.listen(lambda signed_in: print("signed in:", signed_in))
        >>> if not auth.is_authorized():
        ...     auth.authorize()
        >>> sheets_service = auth.build_service("sheets", "v4")
    """

    AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"
    REVOKE_URL = "https://oauth2.googleapis.com/revoke"
    USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"

    def __init__(
        self,
        scopes: list[str] | None = None,
        client_id: str | None = None,
        client_secret: str | None = None,
        token_path: str | Path | None = None,
        credentials_path: str | Path | None = None,
    ):
        """Initialize Google OAuth.

        Args:
            scopes: List of scope names (e.g., ["sheets", "drive_file"]) or full URLs.
                   If None, defaults to ["sheets"].
            client_id: OAuth client ID (loaded from credentials file if not provided).
            client_secret: OAuth client secret (loaded from credentials file if not provided).
            token_path: Path to store/load tokens. Defaults to google/token.json.
            credentials_path: Path to OAuth credentials file. Defaults to google/credentials.json.
        """
        self.token_path = Path(token_path) if token_path else GOOGLE_TOKEN
        self.credentials_path = Path(credentials_path) if credentials_path else GOOGLE_CREDENTIALS

        self.required_scopes = self._resolve_scopes(scopes or ["sheets"])

        if not client_secret:
            file_client_id, client_secret = self._load_client_credentials()
            client_id = client_id or file_client_id

        self.client_id = client_id
        self.client_secret = client_secret

        self.session = OAuth2Session(
            client_id=self.client_id,
            client_secret=self.client_secret,
            scope=" ".join(self.required_scopes),
            redirect_uri="http://localhost:0",
            token=self._load_token(),
            update_token=self._save_token,
            token_endpoint=self.TOKEN_URL,
            grant_type="refresh_token",
            token_endpoint_auth_method="client_secret_post",
        )

        self._state: str | None = None
        self._listeners: list[SignInListener] = []

    def _resolve_scopes(self, scopes: list[str]) -> list[str]:
        """Resolve scope names to full URLs."""
        resolved = []
        for scope in scopes:
            if scope.startswith("https://"):
                resolved.append(scope)
            elif scope in SCOPES:
                resolved.append(SCOPES[scope])
            else:
                raise ValueError(
                    f"Unknown scope: {scope}. Use full URL or one of: {list(SCOPES.keys())}"
                )
        return resolved

    def _load_client_credentials(self) -> tuple[str, str]:
        """Load OAuth client credentials from file."""
        if not self.credentials_path.exists():
            raise CredentialsNotFoundError(str(self.credentials_path))

        with open(self.credentials_path) as f:
            creds = json.load(f)

        # Handle both web and installed app credential formats
        if "installed" in creds:
            app_creds = creds["installed"]
        elif "web" in creds:
            app_creds = creds["web"]
        else:
            raise ValueError("Invalid credentials.json format. Expected 'installed' or 'web' key.")

        return app_creds["client_id"], app_creds["client_secret"]

    def _load_token(self) -> dict[str, Any] | None:
        """Load token from storage."""
        if not self.token_path.exists():
            logger.info("No existing token found")
            return None

        try:
            with open(self.token_path) as f:
                token_data = json.load(f)

            # Convert expiry to timestamp if in ISO format
            expiry = token_data.get("expiry")
            if expiry and isinstance(expiry, str):
                dt = datetime.fromisoformat(expiry.replace("Z", "+00:00"))
                expires_at = dt.timestamp()
            else:
                expires_at = expiry

            # Convert Google token format to Authlib format
            authlib_token = {
                "access_token": token_data.get("token"),
                "refresh_token": token_data.get("refresh_token"),
                "token_type": token_data.get("type", "Bearer"),
                "expires_at": expires_at,
                "scope": " ".join(token_data.get("scopes", [])),
            }

            current_scopes = set(token_data.get("scopes", []))
            required_scopes = set(self.required_scopes)

            if not required_scopes.issubset(current_scopes):
                missing = required_scopes - current_scopes
                logger.warning(f"Token missing required scopes: {missing}")
                return None

            logger.info(f"Loaded token with scopes: {current_scopes}")
            return authlib_token

        except Exception as e:
            logger.error(f"Failed to load token: {e}")
            return None

    def _save_token(
        self,
        token: dict[str, Any],
        refresh_token: str | None = None,
        access_token: str | None = None,
    ):
        """Save token to storage (Authlib callback)."""
        if access_token:
            token["access_token"] = access_token
        if refresh_token:
            token["refresh_token"] = refresh_token

        token_scopes = set(token.get("scope", "").split())
        required_scopes = set(self.required_scopes)

        if not required_scopes.issubset(token_scopes):
            missing = required_scopes - token_scopes
            raise ScopeMismatchError(missing)

        # Google token format, readable by google.oauth2.credentials
        google_token = {
            "token": token["access_token"],
            "refresh_token": token.get("refresh_token"),
            "token_uri": self.TOKEN_URL,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "scopes": list(token_scopes),
            "type": token.get("token_type", "Bearer"),
            "expiry": token.get("expires_at"),
            "_class": "google.oauth2.credentials.Credentials",
        }

        self.token_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.token_path, "w") as f:
            json.dump(google_token, f, indent=2)

        logger.info(f"Token saved with scopes: {token_scopes}")

    # =========================================================================
    # Sign-in state
    # =========================================================================

    def listen(self, listener: SignInListener) -> None:
        """Register a listener called with the new state on sign-in and sign-out."""
        self._listeners.append(listener)

    def unlisten(self, listener: SignInListener) -> None:
        """Remove a previously registered listener."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, signed_in: bool) -> None:
        for listener in list(self._listeners):
            listener(signed_in)

    def is_authorized(self) -> bool:
        """Check if we have valid authorization with required scopes.

        Returns:
            True if authorized with all required scopes, False otherwise.
        """
        if not self.session.token:
            return False

        token_scopes = set(self.session.token.get("scope", "").split())
        required_scopes = set(self.required_scopes)

        return required_scopes.issubset(token_scopes)

    def get_authorization_url(self) -> str:
        """Start OAuth authorization flow.

        Returns:
            Authorization URL for user to visit.
        """
        authorization_url, state = self.session.create_authorization_url(
            self.AUTHORIZE_URL,
            access_type="offline",
            prompt="consent",
            include_granted_scopes="true",
        )

        self._state = state
        return authorization_url

    def fetch_token(self, authorization_response: str) -> dict[str, Any]:
        """Complete authorization flow and fetch token.

        Args:
            authorization_response: The full redirect URL from OAuth callback.

        Returns:
            The fetched OAuth token dict.

        Raises:
            TokenError: If the token endpoint rejects the authorization response.
        """
        try:
            token = self.session.fetch_token(
                self.TOKEN_URL,
                authorization_response=authorization_response,
                client_secret=self.client_secret,
            )
        except OAuth2Error as e:
            raise TokenError(f"Failed to fetch token: {e}") from e

        self._save_token(token)
        self._notify(True)
        return token

    def authorize(
        self,
        prompt: Callable[[str], str] = input,
        open_browser: bool = True,
    ) -> dict[str, Any]:
        """Run the interactive sign-in flow.

        Opens the authorization URL and reads the redirect URL back through
        ``prompt``.

        Args:
            prompt: Callable that shows a message and returns the pasted redirect URL.
            open_browser: Open the authorization URL in a browser.

        Returns:
            The fetched OAuth token dict.

        Raises:
            TokenError: If no redirect URL is given or the token fetch fails.
        """
        url = self.get_authorization_url()
        logger.info(f"Authorization URL: {url}")

        if open_browser:
            webbrowser.open(url)

        redirect_url = prompt(f"Visit {url}\nPaste redirect URL: ").strip()
        if not redirect_url:
            raise TokenError("No redirect URL provided")

        return self.fetch_token(redirect_url)

    def get_credentials(self) -> GoogleCredentials:
        """Get Google Credentials object for API client libraries.

        Returns:
            Google Credentials object with current token.

        Raises:
            TokenError: If not authorized or token refresh fails.
        """
        if not self.is_authorized():
            raise TokenError("Not authorized or missing required scopes")

        expires_at = self.session.token.get("expires_at", 0)
        if expires_at and expires_at < datetime.now().timestamp():
            logger.info("Token expired, refreshing...")
            try:
                self.session.refresh_token(
                    self.TOKEN_URL,
                    refresh_token=self.session.token.get("refresh_token"),
                )
            except OAuth2Error as e:
                raise TokenError(f"Failed to refresh token: {e}") from e

        return GoogleCredentials(
            token=self.session.token["access_token"],
            refresh_token=self.session.token.get("refresh_token"),
            token_uri=self.TOKEN_URL,
            client_id=self.client_id,
            client_secret=self.client_secret,
            scopes=self.required_scopes,
        )

    def build_service(self, service_name: str = "sheets", version: str = "v4"):
        """Build a Google API service with current credentials.

        Args:
            service_name: Name of the service (e.g., 'sheets', 'drive').
            version: API version (e.g., 'v4').

        Returns:
            Google API service object.
        """
        creds = self.get_credentials()
        return build(service_name, version, credentials=creds)

    def get_userinfo(self) -> dict[str, Any]:
        """Fetch the OpenID profile of the signed-in user.

        Raises:
            TokenError: If not authorized.
            requests.HTTPError: If the userinfo endpoint fails.
        """
        if not self.is_authorized():
            raise TokenError("Not authorized or missing required scopes")

        response = self.session.get(self.USERINFO_URL)
        response.raise_for_status()
        return response.json()

    def revoke_token(self):
        """Revoke the current token, clear local storage and notify listeners."""
        if not self.session.token:
            logger.warning("No token to revoke")
            return

        try:
            self.session.post(
                self.REVOKE_URL,
                params={"token": self.session.token["access_token"]},
            )
        except Exception as e:
            logger.warning(f"Failed to revoke token remotely: {e}")

        if self.token_path.exists():
            self.token_path.unlink()

        self.session.token = None
        logger.info("Token revoked successfully")
        self._notify(False)

    def get_token_info(self) -> dict[str, Any]:
        """Get information about the current token.

        Returns:
            Dictionary with token status, scopes, expiry, etc.
        """
        if not self.session.token:
            return {"status": "no_token"}

        token = self.session.token
        expires_at = token.get("expires_at", 0)

        if expires_at:
            expires_in = expires_at - datetime.now().timestamp()
            expires_str = str(timedelta(seconds=max(0, expires_in)))
            is_expired = expires_at < datetime.now().timestamp()
        else:
            expires_str = "unknown"
            is_expired = False

        return {
            "status": "valid" if not is_expired else "expired",
            "scopes": token.get("scope", "").split(),
            "expires_in": expires_str,
            "has_refresh_token": bool(token.get("refresh_token")),
        }
