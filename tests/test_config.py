"""Tests for configuration loading."""

import os
from unittest.mock import patch

from sheetstore.config import (
    GOOGLE_CREDENTIALS,
    SheetsConfig,
    SpreadsheetDescriptor,
    _load_env_file,
    get_credential_status,
)


class TestSheetsConfig:
    """Test SheetsConfig construction."""

    def test_defaults(self):
        """Should default to the discovery transport and home credentials."""
        config = SheetsConfig(client_id="id")
        assert config.transport == "discovery"
        assert config.credentials_path == GOOGLE_CREDENTIALS
        assert config.spreadsheet is None

    def test_from_env_basic(self):
        """Should read the client id and spreadsheet id."""
        env = {
            "SHEETSTORE_CLIENT_ID": "env-client-id",
            "SHEETSTORE_SPREADSHEET_ID": "env-sheet",
        }
        with patch.dict(os.environ, env, clear=True):
            config = SheetsConfig.from_env()
        assert config.client_id == "env-client-id"
        assert config.spreadsheet_id == "env-sheet"
        assert config.spreadsheet is None

    def test_from_env_managed(self):
        """Should build a spreadsheet descriptor from name and sheets."""
        env = {
            "SHEETSTORE_CLIENT_ID": "env-client-id",
            "SHEETSTORE_SPREADSHEET_NAME": "Garage",
            "SHEETSTORE_SHEETS": "cars, owners,,",
            "SHEETSTORE_TRANSPORT": "rest",
        }
        with patch.dict(os.environ, env, clear=True):
            config = SheetsConfig.from_env()
        assert config.spreadsheet == SpreadsheetDescriptor("Garage", ["cars", "owners"])
        assert config.transport == "rest"


class TestEnvFile:
    """Test .env loading."""

    def test_missing_file(self, tmp_path):
        assert _load_env_file(tmp_path / ".env") == {}

    def test_loads_values(self, tmp_path):
        """Should strip quotes and skip comments."""
        env_file = tmp_path / ".env"
        env_file.write_text(
            "# settings\n"
            "SHEETSTORE_CLIENT_ID='quoted-id'\n"
            'SHEETSTORE_SHEETS="cars,owners"\n'
            "not a setting\n"
        )
        with patch.dict(os.environ, {}, clear=True):
            loaded = _load_env_file(env_file)
            assert os.environ["SHEETSTORE_CLIENT_ID"] == "quoted-id"
        assert loaded == {
            "SHEETSTORE_CLIENT_ID": "quoted-id",
            "SHEETSTORE_SHEETS": "cars,owners",
        }

    def test_environment_takes_precedence(self, tmp_path):
        """Existing environment variables should not be overwritten."""
        env_file = tmp_path / ".env"
        env_file.write_text("SHEETSTORE_CLIENT_ID=from-file\n")
        with patch.dict(os.environ, {"SHEETSTORE_CLIENT_ID": "from-env"}, clear=True):
            assert _load_env_file(env_file) == {}
            assert os.environ["SHEETSTORE_CLIENT_ID"] == "from-env"


def test_credential_status():
    with patch.dict(os.environ, {"SHEETSTORE_CLIENT_ID": "id"}, clear=True):
        status = get_credential_status()
    assert status["settings"] == {
        "client_id": True,
        "spreadsheet_id": False,
        "spreadsheet_name": False,
    }
    assert set(status["google"]) == {"credentials", "token"}
