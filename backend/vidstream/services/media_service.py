"""
Media Service

Signed stream/upload URLs and deletion for single objects.
"""
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from vidstream.exceptions import InvalidInputError, StorageBackendError
from vidstream.services.filename_parser import sanitize_upload_filename


logger = logging.getLogger(__name__)

DEFAULT_UPLOAD_CONTENT_TYPE = "video/mp4"


def _now_millis() -> int:
    return int(time.time() * 1000)


@dataclass
class UploadTicket:
    """Where and how the client uploads a new file"""
    upload_url: str
    key: str


class MediaService:
    """Per-object operations against one resolved store"""

    def __init__(
        self,
        store,
        videos_prefix: str = "videos/",
        ttl_seconds: int = 3600,
        clock: Optional[Callable[[], int]] = None,
    ):
        self.store = store
        self.videos_prefix = videos_prefix
        self.ttl_seconds = ttl_seconds
        self._clock = clock or _now_millis

    def stream_url(self, key: Optional[str]) -> str:
        """Signed GET URL; range requests pass through to the bucket."""
        if not key:
            raise InvalidInputError("Video key is required")
        try:
            return self.store.generate_signed_url(key, "get", self.ttl_seconds)
        except StorageBackendError as e:
            raise StorageBackendError(
                "Failed to generate stream URL",
                details=e.details,
                original_error=e.original_error,
            ) from e

    def upload_key(self, filename: str) -> str:
        return f"{self.videos_prefix}{self._clock()}-{sanitize_upload_filename(filename)}"

    def upload_url(self, filename: Optional[str], content_type: Optional[str] = None) -> UploadTicket:
        """
        Signed PUT URL for a new object under the videos prefix.

        The key gets an epoch-millis prefix so repeated uploads of the same
        filename never collide.
        """
        if not filename:
            raise InvalidInputError("Filename is required")

        key = self.upload_key(filename)
        metadata = {
            "original-filename": filename,
            "upload-date": datetime.now(timezone.utc).isoformat(),
        }
        try:
            url = self.store.generate_signed_url(
                key,
                "put",
                self.ttl_seconds,
                content_type=content_type or DEFAULT_UPLOAD_CONTENT_TYPE,
                metadata=metadata,
            )
        except StorageBackendError as e:
            raise StorageBackendError(
                "Failed to generate upload URL",
                details=e.details,
                original_error=e.original_error,
            ) from e

        logger.info(f"Issued upload URL for {key}")
        return UploadTicket(upload_url=url, key=key)

    def delete(self, key: Optional[str]) -> str:
        if not key:
            raise InvalidInputError("Video key is required")
        try:
            self.store.delete(key)
        except StorageBackendError as e:
            raise StorageBackendError(
                "Failed to delete video",
                details=e.details,
                original_error=e.original_error,
            ) from e
        logger.info(f"Deleted {key}")
        return key
