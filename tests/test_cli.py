"""Tests for the sheetstore CLI."""

import argparse
import json
from unittest.mock import patch

import pytest

from sheetstore.cli import build_client, main
from sheetstore.config import SheetsConfig, SpreadsheetDescriptor
from sheetstore.google import SCOPES
from sheetstore.sheets import ManagedSheetsClient, SheetsClient


def test_no_command_prints_help(capsys):
    assert main([]) == 0
    assert "usage: sheetstore" in capsys.readouterr().out


def test_status(capsys):
    assert main(["status"]) == 0
    assert "Google:" in capsys.readouterr().out


def test_import_missing_file(tmp_path, capsys):
    assert main(["import", str(tmp_path / "nope.json")]) == 1
    assert "File not found" in capsys.readouterr().out


def test_import_invalid_format(tmp_path, capsys):
    source = tmp_path / "credentials.json"
    source.write_text(json.dumps({"type": "service_account"}))
    assert main(["import", str(source)]) == 1
    assert "Invalid OAuth credentials format" in capsys.readouterr().out


def test_row_command_reports_configuration_error(tmp_path, capsys):
    """Missing client credentials should be reported, not raised."""
    config = SheetsConfig(credentials_path=tmp_path / "missing.json")
    with patch.object(SheetsConfig, "from_env", return_value=config):
        assert main(["get", "cars", "1"]) == 1
    assert "client_id is required" in capsys.readouterr().out


class TestBuildClient:
    """Client selection from configuration."""

    def _config(self, tmp_path, **kwargs):
        return SheetsConfig(
            client_id="id",
            client_secret="secret",
            credentials_path=tmp_path / "credentials.json",
            token_path=tmp_path / "token.json",
            **kwargs,
        )

    def test_basic_client_with_spreadsheet_override(self, tmp_path):
        args = argparse.Namespace(spreadsheet_id="cli-sheet", transport="rest")
        with patch.object(SheetsConfig, "from_env", return_value=self._config(tmp_path)):
            client = build_client(args)
        assert isinstance(client, SheetsClient)
        assert client.spreadsheet_id == "cli-sheet"

    def test_managed_client(self, tmp_path):
        config = self._config(tmp_path, spreadsheet=SpreadsheetDescriptor("Garage", ["cars"]))
        args = argparse.Namespace(spreadsheet_id=None, transport=None)
        with patch.object(SheetsConfig, "from_env", return_value=config):
            client = build_client(args)
        assert isinstance(client, ManagedSheetsClient)

    def test_client_id_from_credentials_file(self, tmp_path):
        creds_path = tmp_path / "credentials.json"
        creds_path.write_text(
            json.dumps({"installed": {"client_id": "file-id", "client_secret": "file-secret"}})
        )
        config = SheetsConfig(credentials_path=creds_path, token_path=tmp_path / "token.json")
        args = argparse.Namespace(spreadsheet_id=None, transport=None)
        with patch.object(SheetsConfig, "from_env", return_value=config):
            client = build_client(args)
        assert client._config.client_id == "file-id"


class TestStatusToken:
    """Token lines of the status command."""

    def _config(self, tmp_path):
        return SheetsConfig(
            client_id="id",
            client_secret="secret",
            credentials_path=tmp_path / "credentials.json",
            token_path=tmp_path / "token.json",
        )

    def test_valid_token(self, tmp_path, capsys):
        config = self._config(tmp_path)
        config.token_path.write_text(
            json.dumps(
                {
                    "token": "access",
                    "refresh_token": "refresh",
                    "scopes": [SCOPES["sheets"]],
                    "type": "Bearer",
                    "expiry": "2099-01-01T00:00:00Z",
                }
            )
        )
        with patch.object(SheetsConfig, "from_env", return_value=config):
            assert main(["status"]) == 0
        out = capsys.readouterr().out
        assert "Status        : valid" in out
        assert "Expires in    : " in out
        assert "Refresh token : yes" in out

    def test_no_token(self, tmp_path, capsys):
        with patch.object(SheetsConfig, "from_env", return_value=self._config(tmp_path)):
            assert main(["status"]) == 0
        assert "No token found" in capsys.readouterr().out

    def test_no_client_credentials(self, tmp_path, capsys):
        config = SheetsConfig(credentials_path=tmp_path / "missing.json")
        with patch.object(SheetsConfig, "from_env", return_value=config):
            assert main(["status"]) == 0
        assert "No OAuth client credentials" in capsys.readouterr().out


def test_transport_choices_are_validated(capsys):
    with pytest.raises(SystemExit):
        main(["--transport", "grpc", "status"])
    assert "invalid choice" in capsys.readouterr().err


class TestManagedCommands:
    """Which commands may create the managed spreadsheet."""

    @pytest.fixture
    def managed(self, managed_config, signed_in_auth, transport):
        client = ManagedSheetsClient(managed_config, auth=signed_in_auth, transport=transport)
        with patch("sheetstore.cli.build_client", return_value=client):
            yield client

    def _creates(self, transport):
        return [c for c in transport.calls if c[:2] == ("spreadsheets", "create")]

    def test_spreadsheet_does_not_create(self, managed, transport, capsys):
        assert main(["spreadsheet"]) == 1
        assert "Spreadsheet not found" in capsys.readouterr().out
        assert self._creates(transport) == []
        assert transport.files == []

    def test_spreadsheet_shows_existing(self, managed, transport, capsys):
        transport.files.append({"id": "existing-1", "name": "Garage"})
        assert main(["spreadsheet"]) == 0
        out = capsys.readouterr().out
        assert "ID     : existing-1" in out
        assert "First  : cars" in out

    def test_whoami_does_not_touch_the_api(self, managed, transport, capsys):
        assert main(["whoami"]) == 0
        assert "ada@example.com" in capsys.readouterr().out
        assert transport.calls == []

    def test_logout_does_not_create(self, managed, transport, signed_in_auth):
        assert main(["logout"]) == 0
        assert transport.calls == []
        assert signed_in_auth.authorized is False

    def test_row_command_resolves(self, managed, transport, signed_in_auth, capsys):
        assert main(["insert", "cars", "Toyota", "Prius"]) == 0
        assert capsys.readouterr().out.strip() == "1"
        assert len(self._creates(transport)) == 1
        assert managed.spreadsheet_id == "created-1"
        assert signed_in_auth.listeners == []
