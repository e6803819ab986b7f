"""
API Package

FastAPI routers for all endpoints.
"""
from vidstream.api.videos import router as videos_router
from vidstream.api.sync import router as sync_router
from vidstream.api.health import router as health_router

__all__ = [
    "videos_router",
    "sync_router",
    "health_router",
]
