"""sheetstore - a Google Sheets spreadsheet as a row-oriented datastore."""

from sheetstore.config import SheetsConfig, SpreadsheetDescriptor
from sheetstore.exceptions import (
    ConfigurationError,
    PreconditionError,
    RemoteError,
    SheetStoreError,
)
from sheetstore.sheets import ManagedSheetsClient, SheetsClient, UserProfile

__version__ = "0.1.0"

__all__ = [
    "SheetsClient",
    "ManagedSheetsClient",
    "SheetsConfig",
    "SpreadsheetDescriptor",
    "UserProfile",
    "SheetStoreError",
    "ConfigurationError",
    "PreconditionError",
    "RemoteError",
]
