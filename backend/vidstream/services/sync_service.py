"""
Sync Service

Progress-sync merge protocol shared by both sides of the wire, plus the
server-side handling of remote progress blobs.

Each sync code owns one object, `<sync_folder>/<CODE>.json`:
    {"watchProgress": {videoKey: ProgressRecord}, "lastUpdated": epoch-millis}

The blob is read-modify-written on every push without versioning, so two
devices pushing at the same moment can drop each other's new keys until
the next sync. Convergence relies on later syncs, not on locking.
"""
import json
import logging
import random
import re
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from vidstream.exceptions import (
    StorageBackendError,
    SyncCodeFormatError,
    SyncCodeNotFoundError,
)
from vidstream.services.progress_store import ProgressRecord


logger = logging.getLogger(__name__)

# A-Z and 2-9 without the confusables 0/O, 1/I, L
SYNC_CODE_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"
SYNC_CODE_LENGTH = 6
SYNC_CODE_PATTERN = re.compile(r"^[A-Z0-9]{6}$")


def generate_sync_code(rng: Optional[random.Random] = None) -> str:
    """
    Uniformly random 6 character code.

    No collision check: 31^6 ≈ 8.9e8 codes. Not meant as a secret.
    """
    rng = rng or random
    return "".join(rng.choice(SYNC_CODE_ALPHABET) for _ in range(SYNC_CODE_LENGTH))


def normalize_sync_code(code: Optional[str]) -> str:
    """
    Upper-cased code, validated for shape only.

    Raises:
        SyncCodeFormatError: not exactly 6 alphanumeric characters
    """
    candidate = (code or "").strip().upper()
    if not SYNC_CODE_PATTERN.match(candidate):
        raise SyncCodeFormatError(code)
    return candidate


def merge_progress(
    existing: Dict[str, ProgressRecord],
    incoming: Dict[str, ProgressRecord],
) -> Dict[str, ProgressRecord]:
    """
    Last-write-wins per video key.

    Keys present on one side are kept. On both sides the larger updatedAt
    wins; on equal updatedAt the incoming record wins. Neither input is
    modified.
    """
    merged = dict(existing)
    for key, record in incoming.items():
        current = merged.get(key)
        if current is None or record.updated_at >= current.updated_at:
            merged[key] = record
    return merged


def parse_progress_map(data) -> Dict[str, ProgressRecord]:
    """Records from a stored/transported mapping; malformed ones are skipped"""
    progress = {}
    if not isinstance(data, dict):
        return progress
    for key, value in data.items():
        try:
            progress[key] = ProgressRecord.from_dict(value)
        except (KeyError, TypeError, ValueError):
            logger.debug(f"Skipping malformed remote record for {key}")
    return progress


def dump_progress_map(progress: Dict[str, ProgressRecord]) -> Dict[str, dict]:
    return {key: record.to_dict() for key, record in progress.items()}


@dataclass
class RemoteProgressBlob:
    watch_progress: Dict[str, ProgressRecord] = field(default_factory=dict)
    last_updated: Optional[int] = None
    readable: bool = True

    @classmethod
    def from_json(cls, raw: bytes) -> "RemoteProgressBlob":
        """Parse a stored blob; an unreadable blob counts as empty"""
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError, TypeError):
            logger.warning("Unreadable sync blob, treating as empty")
            return cls(readable=False)
        if not isinstance(data, dict):
            return cls(readable=False)
        last_updated = data.get("lastUpdated")
        return cls(
            watch_progress=parse_progress_map(data.get("watchProgress")),
            last_updated=last_updated if isinstance(last_updated, int) else None,
        )

    def to_json(self) -> bytes:
        return json.dumps({
            "watchProgress": dump_progress_map(self.watch_progress),
            "lastUpdated": self.last_updated,
        }).encode("utf-8")


class SyncProgressService:
    """Server side of progress sync, bound to one object store"""

    def __init__(
        self,
        store,
        sync_folder: str = "sync-data",
        clock: Optional[Callable[[], int]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.store = store
        self.sync_folder = sync_folder.rstrip("/")
        self._clock = clock or (lambda: int(time.time() * 1000))
        self._rng = rng

    def blob_key(self, code: str) -> str:
        return f"{self.sync_folder}/{code.upper()}.json"

    def create_code(self) -> str:
        code = generate_sync_code(self._rng)
        logger.info(f"Generated sync code {code}")
        return code

    def _read_raw(self, code: str) -> Optional[bytes]:
        try:
            return self.store.get_bytes(self.blob_key(code))
        except StorageBackendError as e:
            raise StorageBackendError(
                "Failed to read sync progress",
                details=e.details,
                original_error=e.original_error,
            ) from e

    def load_blob(self, code: str) -> Optional[RemoteProgressBlob]:
        raw = self._read_raw(code)
        if raw is None:
            return None
        return RemoteProgressBlob.from_json(raw)

    def unreadable_key(self, code: str, stamp: int) -> str:
        return f"{self.sync_folder}/{code.upper()}.unreadable-{stamp}"

    def _preserve_unreadable(self, code: str, raw: bytes, stamp: int) -> str:
        """Copy an unparseable blob aside before it gets replaced"""
        backup_key = self.unreadable_key(code, stamp)
        try:
            self.store.put(backup_key, raw, content_type="application/octet-stream")
        except StorageBackendError as e:
            raise StorageBackendError(
                "Failed to save sync progress",
                details=e.details,
                original_error=e.original_error,
            ) from e
        logger.error(
            f"Sync {code}: stored progress was unreadable; kept a copy at {backup_key} "
            f"and replaced it with the incoming records"
        )
        return backup_key

    def get_progress(self, code: Optional[str]) -> RemoteProgressBlob:
        """
        Raises:
            SyncCodeFormatError: malformed code
            SyncCodeNotFoundError: no blob stored for the code
        """
        code = normalize_sync_code(code)
        blob = self.load_blob(code)
        if blob is None:
            raise SyncCodeNotFoundError(code)
        return blob

    def save_progress(self, code: Optional[str], incoming: Dict[str, ProgressRecord]) -> RemoteProgressBlob:
        """Merge `incoming` into the stored blob (created if absent) and persist it"""
        code = normalize_sync_code(code)
        raw = self._read_raw(code)
        existing = RemoteProgressBlob.from_json(raw) if raw is not None else RemoteProgressBlob()

        now = self._clock()
        if not existing.readable:
            self._preserve_unreadable(code, raw, now)

        merged = RemoteProgressBlob(
            watch_progress=merge_progress(existing.watch_progress, incoming),
            last_updated=now,
        )
        try:
            self.store.put(self.blob_key(code), merged.to_json(), content_type="application/json")
        except StorageBackendError as e:
            raise StorageBackendError(
                "Failed to save sync progress",
                details=e.details,
                original_error=e.original_error,
            ) from e

        logger.info(
            f"Sync {code}: merged {len(incoming)} incoming into "
            f"{len(existing.watch_progress)} stored records"
        )
        return merged
