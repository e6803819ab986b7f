"""
Videos API Router

Catalog listing, signed stream/upload URLs and deletion.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query

from vidstream.config import Settings, get_settings
from vidstream.api.dependencies import open_store
from vidstream.services.catalog_service import CatalogService
from vidstream.services.media_service import MediaService
from vidstream.services.object_store import get_store_factory
from vidstream.services.storage_provider import available_providers
from vidstream.schemas.catalog import (
    CatalogListResponse,
    GroupedCatalogResponse,
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


router = APIRouter(prefix="/api/videos", tags=["videos"])


@router.get("", response_model=CatalogListResponse)
def list_videos(
    provider: Optional[str] = Query(None, description="Storage provider (r2, do) or empty to auto-detect"),
    settings: Settings = Depends(get_settings),
    store_factory=Depends(get_store_factory),
) -> CatalogListResponse:
    """
    List the video catalog.

    Rebuilt from a fresh bucket listing on every call. Each video carries
    its associated subtitles, poster and detected episode info.

    **Ordering:**
    - S01E02-style names first, by season and episode
    - then everything else by name
    - newest upload first when no name has episode numbering
    """
    store = open_store(settings, store_factory, provider)
    catalog = CatalogService(store, settings.videos_prefix).list_catalog()

    return CatalogListResponse(
        videos=[VideoEntryResponse.from_entry(entry) for entry in catalog.videos],
        count=catalog.count,
        provider=store.provider,
        available_providers=available_providers(settings),
    )


@router.get("/grouped", response_model=GroupedCatalogResponse)
def list_videos_grouped(
    provider: Optional[str] = Query(None, description="Storage provider (r2, do) or empty to auto-detect"),
    settings: Settings = Depends(get_settings),
    store_factory=Depends(get_store_factory),
) -> GroupedCatalogResponse:
    """
    Catalog grouped by series and season.

    Entries without detectable episode info are returned in `ungrouped`.
    """
    store = open_store(settings, store_factory, provider)
    catalog = CatalogService(store, settings.videos_prefix).list_catalog()

    grouped = {
        series: {
            season: [VideoEntryResponse.from_entry(e) for e in episodes]
            for season, episodes in seasons.items()
        }
        for series, seasons in catalog.grouped.items()
    }
    return GroupedCatalogResponse(
        grouped=grouped,
        ungrouped=[VideoEntryResponse.from_entry(e) for e in catalog.ungrouped],
        count=catalog.count,
        provider=store.provider,
        available_providers=available_providers(settings),
    )


@router.post("/stream-url", response_model=StreamUrlResponse)
def get_stream_url(
    request: StreamUrlRequest,
    settings: Settings = Depends(get_settings),
    store_factory=Depends(get_store_factory),
) -> StreamUrlResponse:
    """
    Signed GET URL for a video or subtitle, valid for one hour by default.
    """
    store = open_store(settings, store_factory, request.provider)
    service = MediaService(store, settings.videos_prefix, settings.signed_url_ttl_seconds)

    return StreamUrlResponse(
        stream_url=service.stream_url(request.key),
        provider=store.provider,
    )


@router.post("/upload-url", response_model=UploadUrlResponse)
def get_upload_url(
    request: UploadUrlRequest,
    settings: Settings = Depends(get_settings),
    store_factory=Depends(get_store_factory),
) -> UploadUrlResponse:
    """
    Signed PUT URL for a new upload.

    The object key is `<videos prefix><epoch-millis>-<sanitized filename>`.
    """
    store = open_store(settings, store_factory, request.provider)
    service = MediaService(store, settings.videos_prefix, settings.signed_url_ttl_seconds)
    ticket = service.upload_url(request.filename, request.content_type)

    return UploadUrlResponse(
        upload_url=ticket.upload_url,
        key=ticket.key,
        provider=store.provider,
    )


def _delete(request: DeleteVideoRequest, settings: Settings, store_factory) -> DeleteVideoResponse:
    store = open_store(settings, store_factory, request.provider)
    service = MediaService(store, settings.videos_prefix, settings.signed_url_ttl_seconds)
    key = service.delete(request.key)
    return DeleteVideoResponse(key=key, provider=store.provider)


@router.post("/delete", response_model=DeleteVideoResponse)
def delete_video(
    request: DeleteVideoRequest,
    settings: Settings = Depends(get_settings),
    store_factory=Depends(get_store_factory),
) -> DeleteVideoResponse:
    """Delete one object. Associated subtitles/posters are left in place."""
    return _delete(request, settings, store_factory)


@router.delete("", response_model=DeleteVideoResponse)
def delete_video_by_method(
    request: DeleteVideoRequest,
    settings: Settings = Depends(get_settings),
    store_factory=Depends(get_store_factory),
) -> DeleteVideoResponse:
    """Same as POST /api/videos/delete"""
    return _delete(request, settings, store_factory)
