"""Transports carrying Sheets and Drive API calls.

Two transports share one call signature, ``call(api, method, **params)``,
using the discovery parameter names (``spreadsheetId``, ``range``, ``body``...):

- ``DiscoveryTransport`` executes googleapiclient requests; results arrive
  already decoded.
- ``RestTransport`` sends raw requests through the authlib session; results
  arrive as HTTP responses whose body still needs JSON decoding.

``normalize_response`` turns either result into an ``ApiResponse``, picking
the decoding step from the transport's ``decodes_responses`` flag.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Protocol
from urllib.parse import quote

import httplib2
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.errors import HttpError

from sheetstore.config import TRANSPORTS
from sheetstore.exceptions import ConfigurationError, RemoteError
from sheetstore.google import GoogleOAuth

logger = logging.getLogger(__name__)

SHEETS_API_URL = "https://sheets.googleapis.com/v4/spreadsheets"
DRIVE_FILES_URL = "https://www.googleapis.com/drive/v3/files"

# (api, method) -> (HTTP verb, path template relative to the API url)
_REST_ROUTES: dict[tuple[str, str], tuple[str, str]] = {
    ("values", "get"): ("GET", "/{spreadsheetId}/values/{range}"),
    ("values", "batchGet"): ("GET", "/{spreadsheetId}/values:batchGet"),
    ("values", "append"): ("POST", "/{spreadsheetId}/values/{range}:append"),
    ("values", "update"): ("PUT", "/{spreadsheetId}/values/{range}"),
    ("values", "clear"): ("POST", "/{spreadsheetId}/values/{range}:clear"),
    ("spreadsheets", "get"): ("GET", "/{spreadsheetId}"),
    ("spreadsheets", "create"): ("POST", ""),
    ("files", "list"): ("GET", ""),
}


class Transport(Protocol):
    decodes_responses: bool

    def call(self, api: str, method: str, **params: Any) -> Any: ...

    def reset(self) -> None: ...


@dataclass
class ApiResponse:
    """Decoded body of a Sheets or Drive API response."""

    data: dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    @property
    def values(self) -> list[list[Any]]:
        return self.data.get("values") or []

    @property
    def value_ranges(self) -> list[dict[str, Any]]:
        return self.data.get("valueRanges") or []

    @property
    def updated_range(self) -> str | None:
        """Updated range of a write; appends nest it under ``updates``."""
        return self.data.get("updatedRange") or self.data.get("updates", {}).get("updatedRange")

    @property
    def files(self) -> list[dict[str, Any]]:
        return self.data.get("files") or []


def error_message(body: Any, fallback: str) -> str:
    """Extract ``error.message`` from an API error body."""
    try:
        payload = json.loads(body) if isinstance(body, (bytes, str)) else body
        return payload["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return fallback


def _decode_body(response: Any) -> ApiResponse:
    """Decode a raw HTTP response, raising RemoteError for error statuses."""
    if not response.ok:
        raise RemoteError(
            error_message(response.content, response.reason or f"HTTP {response.status_code}"),
            status_code=response.status_code,
        )
    if not response.content:
        return ApiResponse()
    return ApiResponse(json.loads(response.content))


def normalize_response(transport: Transport, raw: Any) -> ApiResponse:
    """Normalize a transport result into an ApiResponse."""
    if transport.decodes_responses:
        return ApiResponse(raw or {})
    return _decode_body(raw)


class DiscoveryTransport:
    """Executes calls through googleapiclient discovery services."""

    decodes_responses = True

    def __init__(self, auth: GoogleOAuth) -> None:
        self._auth = auth
        self._sheets_service: Any = None
        self._drive_service: Any = None

    def _get_sheets_service(self) -> Any:
        """Get or create Sheets API service."""
        if self._sheets_service is None:
            self._sheets_service = self._auth.build_service("sheets", "v4")
        return self._sheets_service

    def _get_drive_service(self) -> Any:
        """Get or create Drive API service for file lookups."""
        if self._drive_service is None:
            self._drive_service = self._auth.build_service("drive", "v3")
        return self._drive_service

    def reset(self) -> None:
        """Drop cached services so they are rebuilt with fresh credentials."""
        self._sheets_service = None
        self._drive_service = None

    def call(self, api: str, method: str, **params: Any) -> dict[str, Any]:
        if api == "values":
            resource = self._get_sheets_service().spreadsheets().values()
        elif api == "spreadsheets":
            resource = self._get_sheets_service().spreadsheets()
        elif api == "files":
            resource = self._get_drive_service().files()
        else:
            raise ValueError(f"Unknown API: {api}")

        logger.debug(f"{api}.{method} {params.get('range') or params.get('ranges') or ''}")
        # httplib2.Http is not thread-safe; each call gets its own connection
        http = AuthorizedHttp(self._auth.get_credentials(), http=httplib2.Http())
        try:
            return getattr(resource, method)(**params).execute(http=http)
        except HttpError as e:
            raise RemoteError(
                error_message(e.content, e.reason), status_code=e.resp.status
            ) from e


class RestTransport:
    """Sends raw REST requests through the authlib OAuth2Session."""

    decodes_responses = False

    def __init__(self, auth: GoogleOAuth) -> None:
        self._auth = auth

    def reset(self) -> None:
        pass

    def call(self, api: str, method: str, **params: Any) -> Any:
        try:
            verb, template = _REST_ROUTES[(api, method)]
        except KeyError:
            raise ValueError(f"Unknown API method: {api}.{method}") from None

        base_url = DRIVE_FILES_URL if api == "files" else SHEETS_API_URL
        path = template.format(
            spreadsheetId=quote(params.pop("spreadsheetId", ""), safe=""),
            range=quote(params.pop("range", ""), safe=""),
        )
        body = params.pop("body", None)
        if method == "clear" and body is None:
            body = {}

        logger.debug(f"{verb} {base_url}{path}")
        return self._auth.session.request(verb, base_url + path, params=params, json=body)


def create_transport(name: str, auth: GoogleOAuth) -> Transport:
    """Create a transport by name ("discovery" or "rest")."""
    if name == "discovery":
        return DiscoveryTransport(auth)
    if name == "rest":
        return RestTransport(auth)
    raise ConfigurationError(f"Unknown transport: {name}. Use one of: {', '.join(TRANSPORTS)}.")
