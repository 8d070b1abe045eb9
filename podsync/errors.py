"""Exceptions raised by the subscription and device-sync core.

Every error carries a `kind` (stable, machine-readable) and a human-readable
message. The web layer maps the kinds onto HTTP status codes.
"""


class SyncError(Exception):
    """Base class for errors surfaced to API callers."""

    kind = "internal"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        """Serialize the error for a JSON response body."""
        return {"error": self.kind, "detail": self.message}


class NotFound(SyncError):
    """An unknown user or device was referenced."""

    kind = "not_found"
    status_code = 404


class BadRequest(SyncError):
    """Caller input violates a policy; nothing was written."""

    kind = "bad_request"
    status_code = 400


class ConflictingChange(BadRequest):
    """The same podcast URL was both added and removed in one upload."""

    kind = "conflicting_change"

    def __init__(self, url: str):
        super().__init__(f"URL cannot be both added and removed: {url}")
        self.url = url


class StorageError(SyncError):
    """The database failed; the enclosing transaction was rolled back."""

    kind = "internal"
    status_code = 500
