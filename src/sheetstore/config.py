"""Centralized configuration for sheetstore.

Credentials live in a home directory (the repo root by default, or
``$SHEETSTORE_HOME``):
    .env                    - SHEETSTORE_* settings
    google/credentials.json - Google OAuth client credentials
    google/token.json       - Google OAuth tokens

This module auto-loads the .env file on import, so settings are available
to every sheetstore module and to ``SheetsConfig.from_env()``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

# __file__ is src/sheetstore/config.py, so 3 levels up
REPO_ROOT = Path(__file__).parent.parent.parent
HOME_DIR = Path(os.environ["SHEETSTORE_HOME"]) if os.environ.get("SHEETSTORE_HOME") else REPO_ROOT
GOOGLE_DIR = HOME_DIR / "google"

# Credential file paths
ENV_FILE = HOME_DIR / ".env"
GOOGLE_CREDENTIALS = GOOGLE_DIR / "credentials.json"
GOOGLE_TOKEN = GOOGLE_DIR / "token.json"

TRANSPORTS = ("discovery", "rest")


@dataclass(frozen=True)
class SpreadsheetDescriptor:
    """Name and sheet titles of a spreadsheet to find or create."""

    name: str
    sheets: list[str] = field(default_factory=list)


@dataclass
class SheetsConfig:
    """Settings for a SheetsClient.

    Attributes:
        client_id: OAuth client ID (required).
        client_secret: OAuth client secret. Loaded from the credentials file if omitted.
        spreadsheet: Spreadsheet to resolve by name (managed client only).
        spreadsheet_id: Known spreadsheet ID (basic client).
        credentials_path: OAuth client credentials file.
        token_path: Where tokens are stored.
        transport: "discovery" (googleapiclient) or "rest" (raw authlib session).
    """

    client_id: str | None = None
    client_secret: str | None = None
    spreadsheet: SpreadsheetDescriptor | None = None
    spreadsheet_id: str | None = None
    credentials_path: Path = GOOGLE_CREDENTIALS
    token_path: Path = GOOGLE_TOKEN
    transport: str = "discovery"

    @classmethod
    def from_env(cls) -> SheetsConfig:
        """Build a config from SHEETSTORE_* environment variables."""
        spreadsheet = None
        name = os.environ.get("SHEETSTORE_SPREADSHEET_NAME")
        if name:
            sheets = os.environ.get("SHEETSTORE_SHEETS", "")
            spreadsheet = SpreadsheetDescriptor(
                name=name,
                sheets=[s.strip() for s in sheets.split(",") if s.strip()],
            )

        return cls(
            client_id=os.environ.get("SHEETSTORE_CLIENT_ID"),
            client_secret=os.environ.get("SHEETSTORE_CLIENT_SECRET"),
            spreadsheet=spreadsheet,
            spreadsheet_id=os.environ.get("SHEETSTORE_SPREADSHEET_ID"),
            transport=os.environ.get("SHEETSTORE_TRANSPORT", "discovery"),
        )


def _load_env_file(env_path: Path) -> dict[str, str]:
    """Load environment variables from a file.

    Args:
        env_path: Path to .env file.

    Returns:
        Dictionary of loaded variables.
    """
    loaded = {}
    if not env_path.exists():
        return loaded

    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip()

            if (value.startswith('"') and value.endswith('"')) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]

            # Environment wins over .env
            if key and key not in os.environ:
                os.environ[key] = value
                loaded[key] = value

    return loaded


def ensure_google_dir() -> Path:
    """Create google credentials directory if it doesn't exist."""
    GOOGLE_DIR.mkdir(parents=True, exist_ok=True)
    return GOOGLE_DIR


def get_credential_status() -> dict:
    """Get status of the configured credentials and settings."""
    return {
        "home": str(HOME_DIR),
        "env_file": ENV_FILE.exists(),
        "google": {
            "credentials": GOOGLE_CREDENTIALS.exists(),
            "token": GOOGLE_TOKEN.exists(),
        },
        "settings": {
            "client_id": bool(os.environ.get("SHEETSTORE_CLIENT_ID")),
            "spreadsheet_id": bool(os.environ.get("SHEETSTORE_SPREADSHEET_ID")),
            "spreadsheet_name": bool(os.environ.get("SHEETSTORE_SPREADSHEET_NAME")),
        },
    }


_loaded = _load_env_file(ENV_FILE)
