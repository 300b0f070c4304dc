"""
Error taxonomy for the review guesser core.

Only the user-facing notices ever reach a caller of the service. The
source, storage and record errors are raised inside a component and
turned into a degraded result (empty partition, empty state, skipped
line) at that component's boundary.
"""

from datetime import datetime, timezone


class ReviewGuesserError(Exception):
    """Base exception for review guesser errors."""

    def __init__(
        self,
        message: str,
        *,
        source: str | None = None,
        key: str | None = None,
        status_code: int | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.source = source
        self.key = key
        self.status_code = status_code
        self.original_error = original_error
        self.timestamp = datetime.now(timezone.utc)


class SourceUnavailable(ReviewGuesserError):
    """Raised when a catalog partition cannot be fetched."""

    pass


class StorageUnavailable(ReviewGuesserError):
    """Raised when the durable key-value storage cannot be read or written."""

    pass


class MalformedRecord(ReviewGuesserError):
    """Raised when a single persisted entry or CSV line cannot be parsed."""

    def __init__(self, message: str, *, raw: object = None, line_number: int | None = None) -> None:
        super().__init__(message)
        self.raw = raw
        self.line_number = line_number


class NothingToExport(ReviewGuesserError):
    """Raised when an export is requested but no games have been seen."""

    pass


class NothingToImport(ReviewGuesserError):
    """Raised when an import file holds no data lines."""

    pass


class ImportReadError(ReviewGuesserError):
    """Raised when the import source itself cannot be read."""

    pass
