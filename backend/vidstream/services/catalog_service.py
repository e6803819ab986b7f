"""
Catalog Service

Reconstructs a structured media catalog from a flat object listing.

A listing carries no metadata beyond key, size and modification time, so
every association is inferred from names:

    videos/1700000000000-Boston.Legal.S01E02.mkv      → video
    videos/1700000000000-Boston.Legal.S01E02-poster.jpg → its poster
    videos/Subs/Boston.Legal.S01E02/2_eng,English.srt  → its subtitle
"""
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from vidstream.exceptions import StorageBackendError
from vidstream.services.filename_parser import (
    AssetKind,
    EpisodeInfo,
    base_name,
    classify_extension,
    content_type_for,
    display_name_from_key,
    extension_of,
    extract_subtitle_language,
    filename_of,
    is_poster_filename,
    parse_episode_info,
    parse_season_episode,
    strip_timestamp_prefix,
)


logger = logging.getLogger(__name__)

SUBS_FOLDER = "subs"


@dataclass(frozen=True)
class StorageObject:
    """One entry of an object-store listing"""
    key: str
    size: int
    last_modified: Optional[datetime] = None


@dataclass(frozen=True)
class MediaAsset:
    """A storage object classified by role, with its association key"""
    kind: AssetKind
    obj: StorageObject
    extension: str
    base_name: str
    match_key: str

    @property
    def filename(self) -> str:
        return filename_of(self.obj.key)


@dataclass
class SubtitleTrack:
    key: str
    filename: str
    language: str


@dataclass
class VideoEntry:
    """Catalog unit of display, backed by exactly one video object"""
    key: str
    display_name: str
    size_bytes: int
    uploaded_at: Optional[datetime]
    content_type: str
    subtitles: List[SubtitleTrack] = field(default_factory=list)
    poster: Optional[str] = None
    episode_info: Optional[EpisodeInfo] = None


@dataclass
class Catalog:
    """
    Result of one reconciliation.

    `videos` is the flat ordering; `grouped` maps series → season → episodes
    for entries with episode info, `ungrouped` holds the rest.
    """
    videos: List[VideoEntry] = field(default_factory=list)
    grouped: Dict[str, Dict[int, List[VideoEntry]]] = field(default_factory=dict)
    ungrouped: List[VideoEntry] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.videos)


# ============== Classification ==============

def identity_of(filename: str) -> str:
    """Association identity shared by a video and its poster/subtitles"""
    return strip_timestamp_prefix(base_name(filename))


def subtitle_folder_identity(key: str) -> Optional[str]:
    """
    Episode folder of a subtitle stored under 'Subs/<episode-folder>/'.

    Returns None when the key has no such folder.
    """
    folders = key.split("/")[:-1]
    for idx, segment in enumerate(folders):
        if segment.lower() == SUBS_FOLDER and idx + 1 < len(folders):
            return strip_timestamp_prefix(folders[idx + 1])
    return None


def classify_object(obj: StorageObject) -> MediaAsset:
    filename = filename_of(obj.key)
    ext = extension_of(filename)
    kind = classify_extension(ext)
    if kind == AssetKind.POSTER and not is_poster_filename(filename):
        kind = AssetKind.UNRECOGNIZED
    name = base_name(filename)

    match_key = identity_of(filename)
    if kind == AssetKind.SUBTITLE:
        match_key = subtitle_folder_identity(obj.key) or match_key

    return MediaAsset(
        kind=kind,
        obj=obj,
        extension=ext,
        base_name=name,
        match_key=match_key,
    )


def is_placeholder(obj: StorageObject) -> bool:
    """Zero-size objects and trailing-slash keys are directory markers."""
    return not obj.size or obj.key.endswith("/")


# ============== Ordering ==============

def _upload_timestamp(entry: VideoEntry) -> float:
    return entry.uploaded_at.timestamp() if entry.uploaded_at else 0.0


def _season_episode(entry: VideoEntry) -> Optional[Tuple[int, int]]:
    info = entry.episode_info
    if info is not None:
        return info.season, info.episode
    return parse_season_episode(entry.display_name)


def sort_videos(entries: List[VideoEntry]) -> List[VideoEntry]:
    """
    Flat-list order.

    Any detected episode numbering counts, whichever naming style it came
    from (S01E05, "Season 1 Episode 5", 1x05). Without any in the dataset:
    newest upload first. Otherwise episodic entries come first by
    (season, episode), then the remaining entries by name. Key breaks every
    remaining tie.
    """
    by_key = sorted(entries, key=lambda e: e.key)
    numbered = {e.key: _season_episode(e) for e in by_key}

    if not any(numbered.values()):
        return sorted(by_key, key=_upload_timestamp, reverse=True)

    def sort_key(entry: VideoEntry) -> Tuple:
        season_episode = numbered[entry.key]
        if season_episode:
            return (0, season_episode[0], season_episode[1], entry.display_name.lower())
        return (1, 0, 0, entry.display_name.lower())

    return sorted(by_key, key=sort_key)


def group_videos_by_series(
    entries: List[VideoEntry],
) -> Tuple[Dict[str, Dict[int, List[VideoEntry]]], List[VideoEntry]]:
    """
    Split entries into series → season → episodes and an ungrouped list.

    Series are ordered case-insensitively, seasons numerically and episodes
    by episode number.
    """
    buckets: Dict[str, Dict[int, List[VideoEntry]]] = defaultdict(lambda: defaultdict(list))
    ungrouped = []

    for entry in entries:
        info = entry.episode_info
        if info is None:
            ungrouped.append(entry)
            continue
        buckets[info.series][info.season].append(entry)

    grouped = {}
    for series in sorted(buckets, key=lambda s: (s.lower(), s)):
        seasons = buckets[series]
        grouped[series] = {
            season: sorted(seasons[season], key=lambda e: (e.episode_info.episode, e.key))
            for season in sorted(seasons)
        }
    return grouped, ungrouped


def find_next_episode(current: VideoEntry, entries: Iterable[VideoEntry]) -> Optional[VideoEntry]:
    """Entry following `current` in its series, or None"""
    info = current.episode_info or parse_episode_info(current.display_name)
    if info is None:
        return None

    series = info.series.lower()
    episodes = []
    for entry in entries:
        entry_info = entry.episode_info or parse_episode_info(entry.display_name)
        if entry_info and entry_info.series.lower() == series:
            episodes.append((entry_info.season, entry_info.episode, entry.key, entry))
    episodes.sort(key=lambda item: item[:3])

    keys = [item[2] for item in episodes]
    if current.key not in keys:
        return None
    idx = keys.index(current.key)
    if idx + 1 < len(episodes):
        return episodes[idx + 1][3]
    return None


# ============== Assembly ==============

def build_catalog(objects: Optional[Iterable[StorageObject]]) -> Catalog:
    """
    Reconcile a flat listing into a Catalog.

    Objects are visited in key order, so when several posters share an
    identity the first by key wins and subtitles are listed in key order.
    An empty or missing listing yields an empty catalog.
    """
    if not objects:
        return Catalog()

    videos: List[MediaAsset] = []
    subtitles: Dict[str, List[SubtitleTrack]] = defaultdict(list)
    posters: Dict[str, str] = {}

    for obj in sorted(objects, key=lambda o: o.key):
        if is_placeholder(obj):
            continue
        asset = classify_object(obj)

        if asset.kind == AssetKind.VIDEO:
            videos.append(asset)
        elif asset.kind == AssetKind.SUBTITLE:
            subtitles[asset.match_key].append(SubtitleTrack(
                key=obj.key,
                filename=asset.filename,
                language=extract_subtitle_language(asset.filename),
            ))
        elif asset.kind == AssetKind.POSTER:
            posters.setdefault(asset.match_key, obj.key)

    entries = []
    for asset in videos:
        display_name = display_name_from_key(asset.filename)
        entries.append(VideoEntry(
            key=asset.obj.key,
            display_name=display_name,
            size_bytes=asset.obj.size,
            uploaded_at=asset.obj.last_modified,
            content_type=content_type_for(asset.filename),
            subtitles=list(subtitles.get(asset.match_key, [])),
            poster=posters.get(asset.match_key),
            episode_info=parse_episode_info(display_name),
        ))

    flat = sort_videos(entries)
    grouped, ungrouped = group_videos_by_series(flat)
    return Catalog(videos=flat, grouped=grouped, ungrouped=ungrouped)


class CatalogService:
    """
    Catalog listing against one resolved object store.

    Provider-agnostic: the caller hands in a store already bound to a
    bucket.
    """

    def __init__(self, store, videos_prefix: str = "videos/"):
        self.store = store
        self.videos_prefix = videos_prefix

    def list_catalog(self) -> Catalog:
        try:
            objects = self.store.list_objects(self.videos_prefix)
        except StorageBackendError as e:
            logger.error(f"Listing {self.videos_prefix} failed: {e}")
            raise StorageBackendError(
                "Failed to list videos",
                details=e.details,
                original_error=e.original_error,
            ) from e

        catalog = build_catalog(objects)
        logger.debug(f"Catalog built: {catalog.count} videos from {len(objects)} objects")
        return catalog
