"""Error taxonomy for the draft lifecycle core."""

from __future__ import annotations


class FolioError(Exception):
    """Base class for all errors raised by the core."""

    kind = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"error": self.kind, "message": self.message}


class ValidationError(FolioError):
    """User input failed a precondition; surfaced next to the triggering control."""

    kind = "validation"

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field

    def to_dict(self) -> dict[str, str]:
        return {**super().to_dict(), "field": self.field}


class PersistenceError(FolioError):
    """The store rejected or could not complete a read, write or delete."""

    kind = "persistence"

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(FolioError):
    """A referenced draft or slug does not resolve."""

    kind = "not_found"
