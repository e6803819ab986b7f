"""
Health API Router

Storage configuration status.
"""
from typing import Dict, Optional
from fastapi import APIRouter, Depends

from vidstream.config import Settings, get_settings
from vidstream.exceptions import ConfigurationError
from vidstream.schemas.common import CamelModel
from vidstream.services.storage_provider import available_providers, resolve_provider

router = APIRouter(prefix="/api/health", tags=["health"])


class StorageHealthResponse(CamelModel):
    """Which providers could serve a request right now"""
    configured: bool
    available_providers: Dict[str, bool]
    default_provider: Optional[str] = None


@router.get("/storage", response_model=StorageHealthResponse)
def check_storage_health(settings: Settings = Depends(get_settings)) -> StorageHealthResponse:
    """
    Storage configuration check.

    Reports credential completeness only; no request is sent to a bucket.
    """
    try:
        default = resolve_provider(settings).provider.value
    except ConfigurationError:
        default = None

    return StorageHealthResponse(
        configured=default is not None,
        available_providers=available_providers(settings),
        default_provider=default,
    )
