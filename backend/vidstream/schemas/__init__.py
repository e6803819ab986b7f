"""
Pydantic Schemas

Wire models for the API.
"""
from vidstream.schemas.common import CamelModel, ErrorResponse
from vidstream.schemas.catalog import (
    CatalogListResponse,
    EpisodeInfoResponse,
    GroupedCatalogResponse,
    SubtitleTrackResponse,
    VideoEntryResponse,
)
from vidstream.schemas.media import (
    DeleteVideoRequest,
    DeleteVideoResponse,
    StreamUrlRequest,
    StreamUrlResponse,
    UploadUrlRequest,
    UploadUrlResponse,
)
from vidstream.schemas.sync import (
    ProgressRecordSchema,
    SyncProgressResponse,
    SyncSaveRequest,
    SyncSaveResponse,
)

__all__ = [
    "CamelModel",
    "ErrorResponse",
    "CatalogListResponse",
    "EpisodeInfoResponse",
    "GroupedCatalogResponse",
    "SubtitleTrackResponse",
    "VideoEntryResponse",
    "DeleteVideoRequest",
    "DeleteVideoResponse",
    "StreamUrlRequest",
    "StreamUrlResponse",
    "UploadUrlRequest",
    "UploadUrlResponse",
    "ProgressRecordSchema",
    "SyncProgressResponse",
    "SyncSaveRequest",
    "SyncSaveResponse",
]
