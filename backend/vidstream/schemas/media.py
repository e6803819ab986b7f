"""
Media Schemas

Requests/responses for signed URLs and deletion.
Required fields are Optional here so the API can answer with its own
"... is required" message.
"""
from pydantic import Field
from typing import Optional

from vidstream.schemas.common import CamelModel


class StreamUrlRequest(CamelModel):
    key: Optional[str] = Field(None, description="Object key to stream")
    provider: Optional[str] = Field(None, description="r2, do, or empty for auto-detect")


class StreamUrlResponse(CamelModel):
    stream_url: str
    provider: str
    message: str = "Stream URL generated successfully"


class UploadUrlRequest(CamelModel):
    filename: Optional[str] = None
    content_type: Optional[str] = None
    provider: Optional[str] = None


class UploadUrlResponse(CamelModel):
    upload_url: str
    key: str
    provider: str
    message: str = "Upload URL generated successfully"


class DeleteVideoRequest(CamelModel):
    key: Optional[str] = None
    provider: Optional[str] = None


class DeleteVideoResponse(CamelModel):
    success: bool = True
    key: str
    provider: str
    message: str = "Video deleted successfully"
