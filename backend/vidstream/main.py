"""
Vidstream API

FastAPI application serving the video catalog, signed media URLs and
watch-progress sync for the browser client.
"""
import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from vidstream.config import settings
from vidstream.exceptions import VidstreamError
from vidstream.schemas.common import ErrorResponse
from vidstream.api import (
    videos_router,
    sync_router,
    health_router,
)


logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    Vidstream API

    Personal video streaming on top of an S3-compatible bucket
    (Cloudflare R2 or DigitalOcean Spaces):
    - **Videos**: catalog rebuilt from the bucket listing, with subtitles,
      posters and series/season/episode grouping
    - **Media**: time-limited signed URLs for streaming and uploads
    - **Sync**: watch progress shared between devices by a 6 character code
    """,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=3600,
)


# ============== Error responses ==============

@app.exception_handler(VidstreamError)
async def vidstream_error_handler(request: Request, exc: VidstreamError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
        for err in exc.errors()
    )
    body = ErrorResponse(error="Invalid request", details=errors)
    return JSONResponse(status_code=400, content=body.model_dump(exclude_none=True))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = "Method not allowed" if exc.status_code == 405 else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=message).model_dump(exclude_none=True),
        headers=getattr(exc, "headers", None),
    )


# Register routers
app.include_router(videos_router)
app.include_router(sync_router)
app.include_router(health_router)


@app.get("/", tags=["health"])
def root():
    """Root endpoint returning API info."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc",
    }


@app.get("/health", tags=["health"])
def health_check():
    """Health check endpoint for container orchestration."""
    return {"status": "healthy"}
