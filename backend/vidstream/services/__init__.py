"""
Services Package

Business logic layer for the API and the sync client.
"""
from vidstream.services.catalog_service import (
    Catalog,
    CatalogService,
    StorageObject,
    VideoEntry,
    build_catalog,
    find_next_episode,
)
from vidstream.services.media_service import MediaService, UploadTicket
from vidstream.services.object_store import ObjectStore, get_store_factory
from vidstream.services.progress_store import (
    KeyValueStore,
    MemoryKeyValueStore,
    PlaybackTracker,
    ProgressRecord,
    ProgressStore,
    SqlKeyValueStore,
)
from vidstream.services.storage_provider import (
    ProviderConfig,
    ProviderId,
    available_providers,
    resolve_provider,
)
from vidstream.services.sync_client import HttpSyncTransport, SyncEngine
from vidstream.services.sync_service import SyncProgressService, merge_progress

__all__ = [
    "Catalog",
    "CatalogService",
    "StorageObject",
    "VideoEntry",
    "build_catalog",
    "find_next_episode",
    "MediaService",
    "UploadTicket",
    "ObjectStore",
    "get_store_factory",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "PlaybackTracker",
    "ProgressRecord",
    "ProgressStore",
    "SqlKeyValueStore",
    "ProviderConfig",
    "ProviderId",
    "available_providers",
    "resolve_provider",
    "HttpSyncTransport",
    "SyncEngine",
    "SyncProgressService",
    "merge_progress",
]
