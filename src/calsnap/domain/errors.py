"""Error types raised by the analysis pipeline and the food log."""

from uuid import UUID


class CalSnapError(Exception):
    """Base class for all calsnap errors."""


class RequestBuildError(CalSnapError):
    """Raised when a model request cannot be constructed."""


class ExtractionError(CalSnapError):
    """Raised when model output cannot be turned into a nutrition record."""


class MalformedJSONError(ExtractionError):
    """The candidate text is not valid JSON."""


class SchemaMismatchError(ExtractionError):
    """The JSON parsed but does not match the nutrition record shape."""

    def __init__(self, field: str | None, path: str, detail: str) -> None:
        self.field = field
        self.path = path
        self.detail = detail
        location = path or "<root>"
        super().__init__(f"Schema mismatch at {location}: {detail}")


class AnalysisError(CalSnapError):
    """Terminal failure of a single analysis attempt."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        self.cause = cause
        super().__init__(message)


class AnalysisTimeoutError(AnalysisError):
    """The model did not answer within the configured timeout."""


class TransportError(AnalysisError):
    """The model endpoint could not be reached or returned a bad envelope."""


class InvalidResultError(AnalysisError):
    """The model answered but its content failed extraction."""


class StoreError(CalSnapError):
    """Base class for food log persistence errors."""


class EntryNotFoundError(StoreError):
    """No food entry exists with the requested id."""

    def __init__(self, entry_id: UUID) -> None:
        self.entry_id = entry_id
        super().__init__(f"Food entry {entry_id} not found")


class StoreWriteError(StoreError):
    """A write to the underlying store failed; nothing was persisted."""
