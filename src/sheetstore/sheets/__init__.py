"""Google Sheets as a row-oriented datastore.

Usage:
    from sheetstore.sheets import SheetsClient
    from sheetstore.config import SheetsConfig

    client = SheetsClient(SheetsConfig(client_id="...", spreadsheet_id="1AbC..."))
    await client.initialize()
    await client.user.sign_in()

    row = await client.insert("cars", ["Toyota", "Prius", 2016])
    values = await client.get("cars", row)
    await client.update("cars", row, ["Toyota", "Prius", 2017])
    await client.remove("cars", row)

OAuth Setup:
    1. Download OAuth credentials from Google Cloud Console
    2. Import: sheetstore import ~/Downloads/credentials.json
    3. Authorize: sheetstore login
"""

from __future__ import annotations

from sheetstore.sheets.client import (
    ManagedSheetsClient,
    Sheet,
    SheetsClient,
    Spreadsheet,
    User,
    UserProfile,
)
from sheetstore.sheets.ranges import RowRange, SheetRange, parse_start_row
from sheetstore.sheets.transport import (
    ApiResponse,
    DiscoveryTransport,
    RestTransport,
    normalize_response,
)

__all__ = [
    "SheetsClient",
    "ManagedSheetsClient",
    "User",
    "UserProfile",
    "Sheet",
    "Spreadsheet",
    "RowRange",
    "SheetRange",
    "parse_start_row",
    "ApiResponse",
    "DiscoveryTransport",
    "RestTransport",
    "normalize_response",
]
