"""Exception types raised by the lookup service."""
from typing import Optional


class LookupServiceError(Exception):
    """Base class for lookup service errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class InvalidArgument(LookupServiceError, ValueError):
    """Caller input is malformed (e.g. blank author identifier)."""


class DependencyFailure(LookupServiceError):
    """Upstream API or store failed where no fallback exists."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause

    def __str__(self):
        if self.cause is not None:
            return f"{self.message}: {self.cause}"
        return self.message


class EntrySkipped(LookupServiceError):
    """A single upstream work entry could not be used."""


class DegradedLookup(LookupServiceError):
    """Author details were unavailable and a placeholder name was used."""


class UpstreamError(LookupServiceError):
    """HTTP call to Open Library failed or returned unusable data."""

    def __init__(self, message: str, url: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code
