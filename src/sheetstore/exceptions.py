"""sheetstore exceptions."""


class SheetStoreError(Exception):
    """Base exception for sheetstore errors."""

    pass


class ConfigurationError(SheetStoreError):
    """Raised at construction when required configuration is missing."""

    pass


class PreconditionError(SheetStoreError):
    """Raised when an operation is called before the client is operational."""

    pass


class RemoteError(SheetStoreError):
    """Raised when the Sheets or Drive API returns an error."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)
