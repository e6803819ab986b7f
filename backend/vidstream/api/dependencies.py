"""
Shared API dependencies

Per-request provider resolution. Nothing is cached between requests.
"""
from typing import Callable, Optional

from vidstream.config import Settings
from vidstream.services.object_store import ObjectStore
from vidstream.services.storage_provider import ProviderConfig, resolve_provider


def open_store(
    settings: Settings,
    store_factory: Callable[[ProviderConfig], ObjectStore],
    provider: Optional[str] = None,
) -> ObjectStore:
    """Resolve the provider for this request and bind a store to it"""
    return store_factory(resolve_provider(settings, provider))
