"""
Sync API Routes

Remote watch-progress blobs addressed by sync code.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query

from vidstream.config import Settings, get_settings
from vidstream.api.dependencies import open_store
from vidstream.exceptions import InvalidInputError
from vidstream.services.object_store import get_store_factory
from vidstream.services.sync_service import SyncProgressService, normalize_sync_code
from vidstream.schemas.sync import (
    ProgressRecordSchema,
    SyncProgressResponse,
    SyncSaveRequest,
    SyncSaveResponse,
)


router = APIRouter(prefix="/api/sync-progress", tags=["sync"])


def _service(settings: Settings, store_factory) -> SyncProgressService:
    # Sync blobs always live on the auto-detected provider
    store = open_store(settings, store_factory)
    return SyncProgressService(store, settings.sync_folder)


@router.get("", response_model=SyncProgressResponse, response_model_exclude_none=True)
def get_sync_progress(
    code: Optional[str] = Query(None, description="6 character sync code; omit to get a new one"),
    settings: Settings = Depends(get_settings),
    store_factory=Depends(get_store_factory),
) -> SyncProgressResponse:
    """
    Fetch progress for a sync code.

    Without `code` a fresh code with empty progress is returned (`isNew`);
    nothing is stored until the first POST. Unknown codes answer 404.
    """
    service = _service(settings, store_factory)

    if not code:
        return SyncProgressResponse(code=service.create_code(), progress={}, is_new=True)

    blob = service.get_progress(code)
    return SyncProgressResponse(
        code=normalize_sync_code(code),
        progress={
            key: ProgressRecordSchema.from_record(record)
            for key, record in blob.watch_progress.items()
        },
        last_updated=blob.last_updated,
    )


@router.post("", response_model=SyncSaveResponse)
def save_sync_progress(
    request: SyncSaveRequest,
    settings: Settings = Depends(get_settings),
    store_factory=Depends(get_store_factory),
) -> SyncSaveResponse:
    """
    Merge a device's progress map into the stored blob.

    Per video the record with the later `updatedAt` survives; on a tie the
    posted record wins.
    """
    if not request.code:
        raise InvalidInputError("Sync code is required")
    if request.progress is None:
        raise InvalidInputError("Progress data is required")

    service = _service(settings, store_factory)
    blob = service.save_progress(
        request.code,
        {key: record.to_record() for key, record in request.progress.items()},
    )

    return SyncSaveResponse(
        code=normalize_sync_code(request.code),
        last_updated=blob.last_updated,
    )
