"""Shared fixtures: in-memory fakes for the OAuth session and API transport."""

import re

import pytest

from sheetstore.config import SheetsConfig, SpreadsheetDescriptor


class FakeAuth:
    """Stand-in for GoogleOAuth without network or token files."""

    def __init__(self, authorized=False):
        self.authorized = authorized
        self.listeners = []
        self.authorize_calls = 0
        self.userinfo = {
            "sub": "1234567890",
            "name": "Ada Lovelace",
            "email": "ada@example.com",
            "picture": "https://example.com/ada.png",
        }

    def is_authorized(self):
        return self.authorized

    def listen(self, listener):
        self.listeners.append(listener)

    def unlisten(self, listener):
        self.listeners.remove(listener)

    def _set(self, value):
        self.authorized = value
        for listener in list(self.listeners):
            listener(value)

    def authorize(self, prompt=input, open_browser=True):
        self.authorize_calls += 1
        self._set(True)
        return {"access_token": "token"}

    def revoke_token(self):
        self._set(False)

    def get_userinfo(self):
        return self.userinfo


class FakeTransport:
    """In-memory Sheets and Drive backend speaking the discovery call shape."""

    decodes_responses = True

    def __init__(self):
        self.sheets = {}
        self.files = []
        self.calls = []
        self.error = None
        self.resets = 0

    def reset(self):
        self.resets += 1

    def _parse_range(self, range_notation):
        sheet, _, cells = range_notation.partition("!")
        match = re.match(r"^A(\d*)(?::Z(\d*))?$", cells)
        row = int(match.group(1)) if match and match.group(1) else None
        return sheet, row

    def _rows(self, sheet):
        return self.sheets.setdefault(sheet, {})

    def call(self, api, method, **params):
        self.calls.append((api, method, params))
        if self.error is not None:
            raise self.error
        return getattr(self, f"_{api}_{method}")(**params)

    def _values_get(self, spreadsheetId, range):
        sheet, row = self._parse_range(range)
        values = self._rows(sheet).get(row)
        result = {"range": range, "majorDimension": "ROWS"}
        if values:
            result["values"] = [list(values)]
        return result

    def _values_batchGet(self, spreadsheetId, ranges):
        value_ranges = []
        for range_notation in ranges:
            sheet, _ = self._parse_range(range_notation)
            rows = self._rows(sheet)
            value_range = {"range": range_notation, "majorDimension": "ROWS"}
            if rows:
                value_range["values"] = [
                    list(rows.get(n, [])) for n in range(1, max(rows) + 1)
                ]
            value_ranges.append(value_range)
        return {"spreadsheetId": spreadsheetId, "valueRanges": value_ranges}

    def _values_append(self, spreadsheetId, range, valueInputOption, insertDataOption, body):
        sheet, _ = self._parse_range(range)
        rows = self._rows(sheet)
        row = max(rows) + 1 if rows else 1
        values = body["values"][0]
        rows[row] = list(values)
        last_column = chr(ord("A") + len(values) - 1)
        return {
            "spreadsheetId": spreadsheetId,
            "tableRange": f"{sheet}!A1:{last_column}{row - 1}" if row > 1 else None,
            "updates": {
                "spreadsheetId": spreadsheetId,
                "updatedRange": f"{sheet}!A{row}:{last_column}{row}",
                "updatedRows": 1,
            },
        }

    def _values_update(self, spreadsheetId, range, valueInputOption, body):
        sheet, row = self._parse_range(range)
        self._rows(sheet)[row] = list(body["values"][0])
        return {"spreadsheetId": spreadsheetId, "updatedRange": range, "updatedRows": 1}

    def _values_clear(self, spreadsheetId, range):
        sheet, row = self._parse_range(range)
        self._rows(sheet).pop(row, None)
        return {"spreadsheetId": spreadsheetId, "clearedRange": range}

    def _files_list(self, q, fields, pageSize):
        name = q.split("name = '", 1)[1].split("' and mimeType", 1)[0].replace("\\'", "'")
        return {"files": [f for f in self.files if f["name"] == name]}

    def _spreadsheets_create(self, body):
        spreadsheet_id = f"created-{len(self.files) + 1}"
        self.files.append({"id": spreadsheet_id, "name": body["properties"]["title"]})
        return {
            "spreadsheetId": spreadsheet_id,
            "properties": body["properties"],
            "sheets": body.get("sheets", []),
        }

    def _spreadsheets_get(self, spreadsheetId):
        name = next(f["name"] for f in self.files if f["id"] == spreadsheetId)
        return {
            "spreadsheetId": spreadsheetId,
            "properties": {"title": name},
            "sheets": [
                {
                    "properties": {
                        "sheetId": 0,
                        "title": "cars",
                        "index": 0,
                        "gridProperties": {"rowCount": 1000, "columnCount": 26},
                    }
                }
            ],
            "spreadsheetUrl": f"https://docs.google.com/spreadsheets/d/{spreadsheetId}/edit",
        }


@pytest.fixture
def fake_auth():
    return FakeAuth()


@pytest.fixture
def signed_in_auth():
    return FakeAuth(authorized=True)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def config():
    return SheetsConfig(client_id="test-client-id", spreadsheet_id="sheet-123")


@pytest.fixture
def managed_config():
    return SheetsConfig(
        client_id="test-client-id",
        spreadsheet=SpreadsheetDescriptor(name="Garage", sheets=["cars", "owners"]),
    )
