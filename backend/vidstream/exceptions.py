"""
Vidstream exceptions

Every error raised by the services derives from VidstreamError and carries
the HTTP status the API layer answers with.
"""

from typing import Optional


class VidstreamError(Exception):
    """Base exception"""

    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None):
        self.message = message
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ConfigurationError(VidstreamError):
    """
    No storage provider has a complete credential set.

    Fatal for the request and never retried automatically.
    """

    status_code = 500


class InvalidInputError(VidstreamError):
    """Missing or malformed input. The caller must correct it, not retry."""

    status_code = 400


class SyncCodeFormatError(InvalidInputError):
    """Sync code is not a 6 character alphanumeric string"""

    def __init__(self, code: Optional[str] = None):
        self.code = code
        super().__init__("Invalid sync code", f"Expected 6 characters, got {code!r}")


class NotFoundError(VidstreamError):
    """Requested resource does not exist"""

    status_code = 404


class SyncCodeNotFoundError(NotFoundError):
    """
    Well-formed sync code with no remote progress blob.

    Distinct from SyncCodeFormatError so a client can prompt for re-entry.
    """

    def __init__(self, code: str):
        self.code = code
        super().__init__("Sync code not found")


class StorageBackendError(VidstreamError):
    """
    Object store call failed.

    Attributes:
        original_error: boto3/botocore exception, if any
    """

    status_code = 500

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        self.original_error = original_error
        if details is None and original_error is not None:
            details = str(original_error)
        super().__init__(message, details)


class SyncNetworkError(VidstreamError):
    """Sync transport failed. Retryable; local state is left untouched."""

    status_code = 503


class NoActiveSyncCodeError(VidstreamError):
    """Push or pull attempted before a sync code was set"""

    status_code = 400

    def __init__(self):
        super().__init__("No active sync code")
