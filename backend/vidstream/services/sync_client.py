"""
Sync Client

Device side of progress sync: keeps the active sync code in local storage
and reconciles the local Progress Store with the remote blob.
"""
import logging
import time
from typing import Callable, Dict, Optional

import requests

from vidstream.exceptions import (
    NoActiveSyncCodeError,
    SyncCodeNotFoundError,
    SyncNetworkError,
)
from vidstream.services.progress_store import KeyValueStore, ProgressRecord, ProgressStore
from vidstream.services.sync_service import (
    dump_progress_map,
    generate_sync_code,
    merge_progress,
    normalize_sync_code,
    parse_progress_map,
)


logger = logging.getLogger(__name__)

SYNC_CODE_KEY = "videostream_sync_code"
SYNC_ENDPOINT = "/api/sync-progress"


class HttpSyncTransport:
    """requests-based client for the sync endpoint"""

    def __init__(self, base_url: str, timeout: float = 10.0, session: Optional[requests.Session] = None):
        self.url = base_url.rstrip("/") + SYNC_ENDPOINT
        self.timeout = timeout
        self.session = session or requests.Session()

    def _request(self, method: str, **kwargs) -> requests.Response:
        try:
            return self.session.request(method, self.url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise SyncNetworkError("Failed to connect. Try again.", str(exc)) from exc

    @staticmethod
    def _json(response: requests.Response) -> dict:
        if response.status_code >= 400:
            raise SyncNetworkError(
                "Sync request failed",
                f"HTTP {response.status_code}: {response.text[:200]}",
            )
        try:
            return response.json()
        except ValueError as exc:
            raise SyncNetworkError("Sync server returned invalid JSON") from exc

    def request_code(self) -> str:
        data = self._json(self._request("GET"))
        code = data.get("code")
        if not code:
            raise SyncNetworkError("Sync server returned no code")
        return code

    def fetch(self, code: str) -> dict:
        """
        Raises:
            SyncCodeNotFoundError: server answered 404
            SyncNetworkError: anything else went wrong
        """
        response = self._request("GET", params={"code": code})
        if response.status_code == 404:
            raise SyncCodeNotFoundError(code)
        return self._json(response)

    def push(self, code: str, progress: Dict[str, dict]) -> dict:
        response = self._request("POST", json={"code": code, "progress": progress})
        return self._json(response)


class SyncEngine:
    """
    Sync-code lifecycle and merge for one device.

    Local state is only written after the remote call succeeded, so a
    failed push/pull/adopt leaves progress and the active code unchanged.
    """

    def __init__(
        self,
        progress: ProgressStore,
        storage: KeyValueStore,
        transport: HttpSyncTransport,
        clock: Optional[Callable[[], int]] = None,
    ):
        self.progress = progress
        self.storage = storage
        self.transport = transport
        self._clock = clock or (lambda: int(time.time() * 1000))
        self.last_synced: Optional[int] = None

    @property
    def active_code(self) -> Optional[str]:
        return self.storage.get(SYNC_CODE_KEY) or None

    def _require_code(self) -> str:
        code = self.active_code
        if not code:
            raise NoActiveSyncCodeError()
        return code

    def initialize(self) -> str:
        """Stored code, else a server-issued one, else a locally generated one"""
        code = self.active_code
        if code:
            return code
        try:
            code = self.transport.request_code()
        except SyncNetworkError as e:
            logger.warning(f"Could not get a sync code from the server, generating locally: {e}")
            code = generate_sync_code()
        self.storage.set(SYNC_CODE_KEY, code)
        return code

    def _merge_remote(self, data: dict) -> Dict[str, ProgressRecord]:
        remote = parse_progress_map(data.get("progress"))
        merged = merge_progress(self.progress.get_all_progress(), remote)
        self.progress.replace_all_progress(merged)
        self.last_synced = self._clock()
        return merged

    def adopt_code(self, candidate: str) -> Dict[str, ProgressRecord]:
        """
        Pair this device with an existing code.

        Raises:
            SyncCodeFormatError: before any network call
            SyncCodeNotFoundError: the server does not know the code
            SyncNetworkError: retryable transport failure
        """
        code = normalize_sync_code(candidate)
        data = self.transport.fetch(code)
        merged = self._merge_remote(data)
        self.storage.set(SYNC_CODE_KEY, code)
        logger.info(f"Adopted sync code {code} ({len(merged)} records after merge)")
        return merged

    def push(self) -> Optional[int]:
        """Send the whole local map; returns the server's lastUpdated"""
        code = self._require_code()
        data = self.transport.push(code, dump_progress_map(self.progress.get_all_progress()))
        self.last_synced = self._clock()
        return data.get("lastUpdated")

    def pull(self) -> Dict[str, ProgressRecord]:
        """Merge the remote map into local storage (remote wins ties)"""
        code = self._require_code()
        data = self.transport.fetch(code)
        return self._merge_remote(data)

    def sync(self) -> Optional[int]:
        """
        Pull then push, the periodic round-trip.

        A code with no remote blob yet (fresh or locally generated) skips
        the pull; the push creates the blob.
        """
        try:
            self.pull()
        except SyncCodeNotFoundError:
            logger.info(f"No remote progress for {self.active_code} yet, pushing")
        return self.push()
