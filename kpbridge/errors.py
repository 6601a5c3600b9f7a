"""Exception taxonomy shared by the store, the Graph client and the sync core."""

from __future__ import annotations

from typing import Optional


class ConfigurationError(RuntimeError):
    """A required setting is missing or invalid."""


class GraphApiError(Exception):
    """Non-success response from the Microsoft Graph API."""

    def __init__(
        self, status_code: int, message: str = "", code: Optional[str] = None, retry_after: Optional[int] = None
    ):
        self.status_code = status_code
        self.code = code
        self.message = message
        self.retry_after = retry_after
        super().__init__(f"Graph API error {status_code}" + (f" ({code})" if code else "") + (f": {message}" if message else ""))

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404

    @property
    def is_conflict(self) -> bool:
        return self.status_code == 409

    @property
    def is_transient(self) -> bool:
        return self.status_code == 429 or self.status_code >= 500


class ItemConsistencyError(RuntimeError):
    """Local bookkeeping says an external item exists but Graph disagrees."""


class MappingExistsError(Exception):
    """A mapping row with the same unique key is already stored."""


class ExtractedTextTooLargeError(ValueError):
    """Extracted text exceeds the maximum external item content size."""


class DownloadNotAllowedError(PermissionError):
    """A download URL does not point at the configured source system."""
