"""Application-level exception types.

Every failure the file registry can surface derives from ``FilestoreError``.
The handlers registered in ``filestore/main.py`` turn each type into a
short-lived error notice (``{"message": ..., "type": "error"}``) with the
HTTP status stored on the class. None of them are fatal and none are
retried automatically.
"""

from __future__ import annotations


class FilestoreError(Exception):
    """Base class for expected, user-visible failures."""

    status_code = 500
    notice = "Something went wrong."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.notice)


class TooLargeError(FilestoreError):
    """File exceeds the upload ceiling. Raised before any registry call."""

    status_code = 413
    notice = "File too large!"

    def __init__(self, size_bytes: int, max_bytes: int):
        self.size_bytes = size_bytes
        self.max_bytes = max_bytes
        super().__init__(f"File too large! Max {max_bytes // 1000}KB.")


class UploadFailedError(FilestoreError):
    status_code = 502
    notice = "Upload failed."


class DeleteFailedError(FilestoreError):
    status_code = 502
    notice = "Could not delete file."


class SubscriptionError(FilestoreError):
    """Live query channel failed; the last good snapshot stays in place."""

    status_code = 503
    notice = "Error loading files"


class AuthDeniedError(FilestoreError):
    """PIN mismatch — an expected negative outcome, not a fault."""

    status_code = 401
    notice = "Incorrect PIN. Access Denied."


class PayloadDecodeError(FilestoreError):
    status_code = 422
    notice = "Stored file content is corrupt."


class AdminRequiredError(FilestoreError):
    """Mutation attempted while the admin gate is closed."""

    status_code = 403
    notice = "Admin access required"
