"""
Progress Store

Per-video watch progress kept in a local key-value capability.

Layout inside the key-value store (JSON strings):
    videoWatchProgress → {videoKey: {currentTime, duration, percent, updatedAt}}
    recentlyWatched    → [videoKey, ...] most recent first, at most 20
"""
import json
import logging
import math
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from vidstream.models import KeyValueEntry


logger = logging.getLogger(__name__)

STORAGE_KEY = "videoWatchProgress"
RECENTLY_WATCHED_KEY = "recentlyWatched"
RECENTLY_WATCHED_LIMIT = 20
WATCHED_THRESHOLD = 90.0
IN_PROGRESS_MIN = 5.0


def now_millis() -> int:
    return int(time.time() * 1000)


def _is_positive_finite(value) -> bool:
    return value is not None and math.isfinite(value) and value > 0


def _is_non_negative_finite(value) -> bool:
    return value is not None and math.isfinite(value) and value >= 0


# ============== Key-value capability ==============

class KeyValueStore(ABC):
    """Durable, synchronous, string-keyed storage"""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...


class MemoryKeyValueStore(KeyValueStore):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class SqlKeyValueStore(KeyValueStore):
    """KeyValueStore persisted in the key_value_entries table"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, key: str) -> Optional[str]:
        entry = self.db.execute(
            select(KeyValueEntry).where(KeyValueEntry.key == key)
        ).scalar_one_or_none()
        return entry.value if entry else None

    def set(self, key: str, value: str) -> None:
        entry = self.db.get(KeyValueEntry, key)
        if entry is None:
            self.db.add(KeyValueEntry(key=key, value=value))
        else:
            entry.value = value
        self.db.commit()


# ============== Records ==============

@dataclass
class ProgressRecord:
    current_time: float
    duration: float
    percent: float
    updated_at: int

    @classmethod
    def from_dict(cls, data: dict) -> "ProgressRecord":
        """Build from the stored camelCase shape. Raises on missing or out-of-range fields."""
        record = cls(
            current_time=float(data["currentTime"]),
            duration=float(data["duration"]),
            percent=float(data["percent"]),
            updated_at=int(data["updatedAt"]),
        )
        if (
            not _is_positive_finite(record.duration)
            or not _is_non_negative_finite(record.current_time)
            or not math.isfinite(record.percent)
            or record.updated_at < 0
        ):
            raise ValueError(f"Out-of-range progress record: {data!r}")
        return record

    def to_dict(self) -> dict:
        return {
            "currentTime": self.current_time,
            "duration": self.duration,
            "percent": self.percent,
            "updatedAt": self.updated_at,
        }


@dataclass
class InProgressVideo:
    """A "continue watching" row"""
    video_key: str
    percent: float
    current_time: float
    duration: float
    updated_at: int


def format_time(seconds: Optional[float]) -> str:
    """M:SS, or H:MM:SS from one hour up"""
    if not seconds or seconds != seconds:
        return "0:00"
    total = int(seconds)
    hrs, rest = divmod(total, 3600)
    mins, secs = divmod(rest, 60)
    if hrs > 0:
        return f"{hrs}:{mins:02d}:{secs:02d}"
    return f"{mins}:{secs:02d}"


class ProgressStore:
    """
    Watch progress for the local device.

    Writes overwrite a record wholesale; merging happens only against the
    remote side (see sync_service). Corrupt storage reads as empty.
    """

    def __init__(self, storage: KeyValueStore, clock: Optional[Callable[[], int]] = None):
        self.storage = storage
        self._clock = clock or now_millis

    # Internal helpers -------------------------------------------------
    def _read_json(self, key: str, default):
        raw = self.storage.get(key)
        if not raw:
            return default
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            logger.warning(f"Discarding unreadable local state under '{key}'")
            return default
        return data if isinstance(data, type(default)) else default

    def _write_progress(self, progress: Dict[str, ProgressRecord]) -> None:
        self.storage.set(
            STORAGE_KEY,
            json.dumps({key: record.to_dict() for key, record in progress.items()}),
        )

    def _touch_recently_watched(self, video_key: str) -> None:
        recent = [k for k in self.get_recently_watched() if k != video_key]
        recent.insert(0, video_key)
        self.storage.set(RECENTLY_WATCHED_KEY, json.dumps(recent[:RECENTLY_WATCHED_LIMIT]))

    # Public API -------------------------------------------------------
    def get_all_progress(self) -> Dict[str, ProgressRecord]:
        progress = {}
        for key, data in self._read_json(STORAGE_KEY, {}).items():
            try:
                progress[key] = ProgressRecord.from_dict(data)
            except (KeyError, TypeError, ValueError):
                logger.debug(f"Skipping malformed progress record for {key}")
        return progress

    def replace_all_progress(self, progress: Dict[str, ProgressRecord]) -> None:
        self._write_progress(progress)

    def save_progress(self, video_key: str, current_time: float, duration: Optional[float]) -> None:
        """
        Overwrite the record for one video.

        No-op while duration is unknown, zero or not finite (players report
        NaN before metadata loads), or without a key. A non-finite position
        is also ignored.
        """
        if not video_key or duration is None or not _is_positive_finite(float(duration)):
            return
        current_time = float(current_time or 0)
        if not math.isfinite(current_time):
            return

        current_time = max(0.0, current_time)
        percent = min(100.0, current_time / duration * 100)

        progress = self.get_all_progress()
        progress[video_key] = ProgressRecord(
            current_time=current_time,
            duration=float(duration),
            percent=percent,
            updated_at=self._clock(),
        )
        self._write_progress(progress)
        self._touch_recently_watched(video_key)

    def get_progress(self, video_key: str) -> Optional[ProgressRecord]:
        return self.get_all_progress().get(video_key)

    def get_progress_percent(self, video_key: str) -> int:
        record = self.get_progress(video_key)
        if record is None:
            return 0
        # half-up
        return max(0, min(100, math.floor(record.percent + 0.5)))

    def is_watched(self, video_key: str) -> bool:
        record = self.get_progress(video_key)
        return record is not None and record.percent >= WATCHED_THRESHOLD

    def mark_as_watched(self, video_key: str, duration: float) -> None:
        self.save_progress(video_key, duration, duration)

    def clear_progress(self, video_key: str) -> None:
        progress = self.get_all_progress()
        if progress.pop(video_key, None) is not None:
            self._write_progress(progress)

    def get_recently_watched(self) -> List[str]:
        return [k for k in self._read_json(RECENTLY_WATCHED_KEY, []) if isinstance(k, str)]

    def get_in_progress_videos(self) -> List[InProgressVideo]:
        """Started but unfinished videos (5% < percent < 90%), newest first"""
        rows = [
            InProgressVideo(
                video_key=key,
                percent=record.percent,
                current_time=record.current_time,
                duration=record.duration,
                updated_at=record.updated_at,
            )
            for key, record in self.get_all_progress().items()
            if IN_PROGRESS_MIN < record.percent < WATCHED_THRESHOLD
        ]
        rows.sort(key=lambda row: row.updated_at, reverse=True)
        return rows


class PlaybackTracker:
    """
    Turns player events into progress saves for one video.

    Saves at most every SAVE_INTERVAL_SECONDS while playing, always on
    pause, and marks the video watched when playback ends.
    """

    SAVE_INTERVAL_SECONDS = 5.0

    def __init__(
        self,
        store: ProgressStore,
        video_key: str,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.video_key = video_key
        self._monotonic = monotonic
        self._last_save: Optional[float] = None

    def resume_position(self) -> float:
        """Where to start playback: saved position unless already watched"""
        record = self.store.get_progress(self.video_key)
        if record is None or record.percent >= WATCHED_THRESHOLD:
            return 0.0
        return record.current_time

    def on_time_update(self, current_time: float, duration: Optional[float]) -> bool:
        now = self._monotonic()
        if self._last_save is not None and now - self._last_save < self.SAVE_INTERVAL_SECONDS:
            return False
        self.store.save_progress(self.video_key, current_time, duration)
        self._last_save = now
        return True

    def on_pause(self, current_time: float, duration: Optional[float]) -> None:
        self.store.save_progress(self.video_key, current_time, duration)
        self._last_save = self._monotonic()

    def on_ended(self, duration: Optional[float]) -> None:
        if duration:
            self.store.mark_as_watched(self.video_key, duration)
        self._last_save = self._monotonic()
