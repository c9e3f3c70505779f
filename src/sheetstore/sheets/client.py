"""Row-oriented Google Sheets client implementation."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from sheetstore.config import SheetsConfig
from sheetstore.exceptions import ConfigurationError, PreconditionError, RemoteError
from sheetstore.google import GoogleOAuth
from sheetstore.sheets.ranges import SheetRange, parse_start_row
from sheetstore.sheets.transport import (
    ApiResponse,
    Transport,
    create_transport,
    normalize_response,
)

logger = logging.getLogger(__name__)

GOOGLE_SHEET_MIME_TYPE = "application/vnd.google-apps.spreadsheet"

USER_ENTERED = "USER_ENTERED"
INSERT_ROWS = "INSERT_ROWS"

Cell = str | int | float | bool
Callback = Callable[[Any], None]


@dataclass(frozen=True)
class UserProfile:
    """Basic profile of the signed-in user."""

    id: str
    name: str
    email: str
    image_url: str | None = None


@dataclass
class Sheet:
    """Represents a sheet within a spreadsheet."""

    id: int
    title: str
    index: int
    row_count: int = 1000
    column_count: int = 26


@dataclass
class Spreadsheet:
    """Represents a Google Spreadsheet."""

    id: str
    title: str
    sheets: list[Sheet] | None = None
    url: str | None = None

    @property
    def default_sheet(self) -> Sheet | None:
        """Get the first sheet."""
        if self.sheets:
            return self.sheets[0]
        return None


def _deliver(callback: Callback | None, value: Any) -> Any:
    if callback is not None:
        callback(value)
    return value


class User:
    """Sign-in surface of a client, available as ``client.user``."""

    def __init__(self, client: _BaseSheetsClient) -> None:
        self._client = client

    def is_signed_in(self) -> bool:
        return self._client._signed_in

    async def sign_in(self, callback: Callable[[bool], None] | None = None) -> bool:
        """Sign in, running the interactive OAuth flow if needed.

        The callback is invoked once with the resulting sign-in state.

        Raises:
            PreconditionError: If the client is not initialized.
            TokenError: If the authorization flow fails.
        """
        client = self._client
        if not client._initialized:
            raise PreconditionError("Client is not initialized yet. Call initialize() first.")

        if not client._signed_in:
            await asyncio.to_thread(client._auth.authorize, client._prompt, client._open_browser)

        # Sign-in may also have completed outside this call, leaving resolution pending
        if client._signed_in:
            await client._on_signed_in()
        return _deliver(callback, client._signed_in)

    async def sign_out(self, callback: Callable[[], None] | None = None) -> None:
        """Revoke the token and forget it locally."""
        await asyncio.to_thread(self._client._auth.revoke_token)
        if callback is not None:
            callback()

    async def get_profile(self) -> UserProfile | None:
        """Get the signed-in user's profile, or None if unavailable."""
        if not self.is_signed_in():
            return None

        try:
            info = await asyncio.to_thread(self._client._auth.get_userinfo)
        except Exception as e:
            logger.warning(f"Failed to fetch user profile: {e}")
            return None

        return UserProfile(
            id=info.get("sub", ""),
            name=info.get("name", ""),
            email=info.get("email", ""),
            image_url=info.get("picture"),
        )


class _BaseSheetsClient:
    """Shared session state, sign-in handling and row CRUD."""

    SCOPES = ["sheets", "openid", "email", "profile"]

    def __init__(
        self,
        config: SheetsConfig,
        on_initialized: Callable[[], None] | None = None,
        *,
        auth: GoogleOAuth | None = None,
        transport: Transport | None = None,
        prompt: Callable[[str], str] = input,
        open_browser: bool = True,
    ) -> None:
        """Initialize the client. No network calls are made.

        Args:
            config: Client configuration.
            on_initialized: Called once when ``initialize()`` completes.
            auth: OAuth session. Built from ``config`` if omitted.
            transport: API transport. Built from ``config.transport`` if omitted.
            prompt: Reads the redirect URL during interactive sign-in.
            open_browser: Open the authorization URL in a browser during sign-in.

        Raises:
            ConfigurationError: If client_id is missing, OAuth client
                credentials cannot be found, or the transport is unknown.
        """
        if not config.client_id:
            raise ConfigurationError(
                "client_id is required. Get one from Google Cloud Console."
            )
        self._validate_config(config)

        self._config = config
        self._on_initialized = on_initialized
        self._auth = auth or GoogleOAuth(
            scopes=self.SCOPES,
            client_id=config.client_id,
            client_secret=config.client_secret,
            token_path=config.token_path,
            credentials_path=config.credentials_path,
        )
        self._transport = transport or create_transport(config.transport, self._auth)
        self._prompt = prompt
        self._open_browser = open_browser

        self._initialized = False
        self._listening = False
        self._signed_in = False
        self._spreadsheet_id: str | None = config.spreadsheet_id or None

        self.user = User(self)

    def _validate_config(self, config: SheetsConfig) -> None:
        pass

    async def _on_signed_in(self) -> None:
        pass

    def _on_sign_in_changed(self, signed_in: bool) -> None:
        logger.info(f"Sign-in state changed: {signed_in}")
        self._signed_in = signed_in
        self._transport.reset()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def initialize(self, resolve: bool = True) -> None:
        """Bootstrap the OAuth session and invoke ``on_initialized`` once.

        A bootstrap that fails while resolving the spreadsheet leaves the
        client uninitialized, so ``initialize()`` can be retried.

        Args:
            resolve: Resolve the spreadsheet now if already signed in. When
                False, resolution waits for ``user.sign_in()``.
        """
        if self._initialized:
            return

        if not self._listening:
            self._auth.listen(self._on_sign_in_changed)
            self._listening = True
        self._signed_in = self._auth.is_authorized()

        if self._signed_in and resolve:
            await self._on_signed_in()

        self._initialized = True
        logger.info(f"Client initialized (signed in: {self._signed_in})")

        if self._on_initialized is not None:
            self._on_initialized()

    def close(self) -> None:
        """Stop tracking sign-in changes of the OAuth session."""
        if self._listening:
            self._auth.unlisten(self._on_sign_in_changed)
            self._listening = False

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()

    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def spreadsheet_id(self) -> str | None:
        return self._spreadsheet_id

    def _check_signed_in(self) -> None:
        if not self._initialized:
            raise PreconditionError("Client is not initialized yet. Call initialize() first.")
        if not self._signed_in:
            raise PreconditionError("User is not signed in.")

    MISSING_SPREADSHEET_MESSAGE = (
        "spreadsheet_id is not set. Copy it from the spreadsheet URL in the address bar."
    )

    def _check_operational(self) -> None:
        self._check_signed_in()
        if not self._spreadsheet_id:
            raise PreconditionError(self.MISSING_SPREADSHEET_MESSAGE)

    async def _request(self, api: str, method: str, **params: Any) -> ApiResponse:
        raw = await asyncio.to_thread(self._transport.call, api, method, **params)
        return normalize_response(self._transport, raw)

    # =========================================================================
    # Rows
    # =========================================================================

    async def get(self, sheet_name: str, row: int, callback: Callback | None = None) -> list[Any]:
        """Read one row.

        Returns:
            The row's cell values, or an empty list if the row is empty.
        """
        self._check_operational()
        response = await self._request(
            "values",
            "get",
            spreadsheetId=self._spreadsheet_id,
            range=str(SheetRange(sheet_name).row(row)),
        )
        values = response.values
        return _deliver(callback, values[0] if values else [])

    async def get_all(self, sheet_name: str, callback: Callback | None = None) -> list[list[Any]]:
        """Read every row of a sheet."""
        self._check_operational()
        response = await self._request(
            "values",
            "batchGet",
            spreadsheetId=self._spreadsheet_id,
            ranges=[str(SheetRange(sheet_name))],
        )
        value_ranges = response.value_ranges
        rows = value_ranges[0].get("values", []) if value_ranges else []
        return _deliver(callback, rows)

    async def insert(
        self,
        sheet_name: str,
        row_data: Sequence[Cell],
        callback: Callback | None = None,
    ) -> int:
        """Append a row after the last row with data.

        Returns:
            1-based row number of the appended row.
        """
        self._check_operational()
        response = await self._request(
            "values",
            "append",
            spreadsheetId=self._spreadsheet_id,
            range=SheetRange(sheet_name).anchor,
            valueInputOption=USER_ENTERED,
            insertDataOption=INSERT_ROWS,
            body={"values": [list(row_data)]},
        )
        updated_range = response.updated_range
        if not updated_range:
            raise RemoteError("Append response did not include an updated range")
        return _deliver(callback, parse_start_row(updated_range))

    async def update(
        self,
        sheet_name: str,
        row: int,
        row_data: Sequence[Cell],
        callback: Callback | None = None,
    ) -> bool:
        """Overwrite one row."""
        self._check_operational()
        await self._request(
            "values",
            "update",
            spreadsheetId=self._spreadsheet_id,
            range=str(SheetRange(sheet_name).row(row)),
            valueInputOption=USER_ENTERED,
            body={"values": [list(row_data)]},
        )
        return _deliver(callback, True)

    async def remove(self, sheet_name: str, row: int, callback: Callback | None = None) -> bool:
        """Clear the values of one row. The row itself is kept."""
        self._check_operational()
        await self._request(
            "values",
            "clear",
            spreadsheetId=self._spreadsheet_id,
            range=str(SheetRange(sheet_name).row(row)),
        )
        return _deliver(callback, True)


class SheetsClient(_BaseSheetsClient):
    """Google Sheets row client for a spreadsheet chosen by the host.

    Usage:
        client = SheetsClient(SheetsConfig(client_id="..."))
        await client.initialize()
        client.set_spreadsheet_id("1AbC...")
        await client.user.sign_in()

        cars = await client.get_all("cars")
        row = await client.insert("cars", ["Toyota", "Prius", 2016])
    """

    def set_spreadsheet_id(self, spreadsheet_id: str) -> None:
        self._spreadsheet_id = spreadsheet_id


class ManagedSheetsClient(_BaseSheetsClient):
    """Google Sheets row client that finds or creates its spreadsheet by name.

    On sign-in the spreadsheet named in ``config.spreadsheet`` is looked up
    in Drive and created with the configured sheets if it does not exist.

    Usage:
        config = SheetsConfig(
            client_id="...",
            spreadsheet=SpreadsheetDescriptor("Garage", ["cars", "owners"]),
        )
        async with ManagedSheetsClient(config) as client:
            await client.user.sign_in()
            await client.insert("cars", ["Toyota", "Prius", 2016])
    """

    SCOPES = _BaseSheetsClient.SCOPES + ["drive_readonly", "drive_file"]
    MISSING_SPREADSHEET_MESSAGE = "spreadsheet has not been resolved yet. Sign in first."

    def _validate_config(self, config: SheetsConfig) -> None:
        if config.spreadsheet is None or not config.spreadsheet.name:
            raise ConfigurationError(
                "spreadsheet is required: SpreadsheetDescriptor(name, sheets)."
            )

    async def _on_signed_in(self) -> None:
        await self._resolve_spreadsheet_id()

    async def get_spreadsheet(
        self, callback: Callable[[Spreadsheet | None], None] | None = None
    ) -> Spreadsheet | None:
        """Get the configured spreadsheet's metadata.

        Returns:
            Spreadsheet, or None if no spreadsheet with the configured name exists.
        """
        self._check_signed_in()
        spreadsheet_id = self._spreadsheet_id or await self._find_spreadsheet_id()
        if not spreadsheet_id:
            return _deliver(callback, None)

        response = await self._request("spreadsheets", "get", spreadsheetId=spreadsheet_id)
        return _deliver(callback, self._parse_spreadsheet(response.data))

    async def _find_spreadsheet_id(self) -> str | None:
        """Look up a spreadsheet by exact name in Drive."""
        name = self._config.spreadsheet.name.replace("\\", "\\\\").replace("'", "\\'")
        response = await self._request(
            "files",
            "list",
            q=f"name = '{name}' and mimeType = '{GOOGLE_SHEET_MIME_TYPE}' and trashed = false",
            fields="files(id, name)",
            pageSize=10,
        )
        files = response.files
        return files[0]["id"] if files else None

    async def _resolve_spreadsheet_id(self) -> str:
        """Find the configured spreadsheet, creating it if missing."""
        if self._spreadsheet_id:
            return self._spreadsheet_id

        spreadsheet_id = await self._find_spreadsheet_id()
        if not spreadsheet_id:
            descriptor = self._config.spreadsheet
            body: dict[str, Any] = {"properties": {"title": descriptor.name}}
            if descriptor.sheets:
                body["sheets"] = [{"properties": {"title": name}} for name in descriptor.sheets]

            response = await self._request("spreadsheets", "create", body=body)
            spreadsheet_id = response.get("spreadsheetId")
            if not spreadsheet_id:
                raise RemoteError("Create response did not include a spreadsheetId")
            logger.info(f"Created spreadsheet '{descriptor.name}' ({spreadsheet_id})")

        self._spreadsheet_id = spreadsheet_id
        return spreadsheet_id

    def _parse_spreadsheet(self, data: dict) -> Spreadsheet:
        """Parse spreadsheet from API response."""
        sheets = []
        for sheet_data in data.get("sheets", []):
            props = sheet_data.get("properties", {})
            grid_props = props.get("gridProperties", {})
            sheets.append(
                Sheet(
                    id=props.get("sheetId", 0),
                    title=props.get("title", ""),
                    index=props.get("index", 0),
                    row_count=grid_props.get("rowCount", 1000),
                    column_count=grid_props.get("columnCount", 26),
                )
            )

        return Spreadsheet(
            id=data["spreadsheetId"],
            title=data.get("properties", {}).get("title", ""),
            sheets=sheets,
            url=data.get("spreadsheetUrl"),
        )
