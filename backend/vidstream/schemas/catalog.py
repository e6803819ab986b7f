"""
Catalog Schemas

Pydantic models for the reconciled video catalog.
"""
from pydantic import Field
from typing import Dict, List, Optional
from datetime import datetime

from vidstream.schemas.common import CamelModel
from vidstream.services.catalog_service import VideoEntry


class EpisodeInfoResponse(CamelModel):
    series: str
    season: int
    episode: int


class SubtitleTrackResponse(CamelModel):
    key: str
    filename: str
    language: str


class VideoEntryResponse(CamelModel):
    """
    Single catalog entry.

    Exactly one video object backs each entry; subtitles and poster were
    associated by name.
    """
    key: str = Field(..., description="Object key of the video")
    display_name: str = Field(..., description="Name without upload prefix or extension")
    size_bytes: int
    uploaded_at: Optional[datetime] = None
    content_type: str
    subtitles: List[SubtitleTrackResponse] = Field(default_factory=list)
    poster: Optional[str] = Field(None, description="Object key of the poster image")
    episode_info: Optional[EpisodeInfoResponse] = None

    @classmethod
    def from_entry(cls, entry: VideoEntry) -> "VideoEntryResponse":
        info = entry.episode_info
        return cls(
            key=entry.key,
            display_name=entry.display_name,
            size_bytes=entry.size_bytes,
            uploaded_at=entry.uploaded_at,
            content_type=entry.content_type,
            subtitles=[
                SubtitleTrackResponse(key=s.key, filename=s.filename, language=s.language)
                for s in entry.subtitles
            ],
            poster=entry.poster,
            episode_info=(
                EpisodeInfoResponse(series=info.series, season=info.season, episode=info.episode)
                if info else None
            ),
        )


class CatalogListResponse(CamelModel):
    """Flat catalog listing"""
    videos: List[VideoEntryResponse]
    count: int
    provider: str
    available_providers: Dict[str, bool]


class GroupedCatalogResponse(CamelModel):
    """Series → season → episodes, plus entries without episode info"""
    grouped: Dict[str, Dict[int, List[VideoEntryResponse]]]
    ungrouped: List[VideoEntryResponse]
    count: int
    provider: str
    available_providers: Dict[str, bool]
