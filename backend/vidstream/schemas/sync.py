"""
Sync Schemas

Wire models for the progress-sync endpoint.
"""
from pydantic import Field
from typing import Dict, Optional

from vidstream.schemas.common import CamelModel
from vidstream.services.progress_store import ProgressRecord


class ProgressRecordSchema(CamelModel):
    """One video's watch progress"""
    current_time: float = Field(..., ge=0, allow_inf_nan=False, description="Playback position in seconds")
    duration: float = Field(..., gt=0, allow_inf_nan=False, description="Video length in seconds")
    percent: float = Field(..., ge=0, le=100, allow_inf_nan=False)
    updated_at: int = Field(..., ge=0, description="Epoch milliseconds of the last save")

    def to_record(self) -> ProgressRecord:
        return ProgressRecord(
            current_time=self.current_time,
            duration=self.duration,
            percent=self.percent,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_record(cls, record: ProgressRecord) -> "ProgressRecordSchema":
        return cls(
            current_time=record.current_time,
            duration=record.duration,
            percent=min(100.0, max(0.0, record.percent)),
            updated_at=record.updated_at,
        )


class SyncProgressResponse(CamelModel):
    code: str
    progress: Dict[str, ProgressRecordSchema] = Field(default_factory=dict)
    last_updated: Optional[int] = None
    is_new: Optional[bool] = None


class SyncSaveRequest(CamelModel):
    code: Optional[str] = None
    progress: Optional[Dict[str, ProgressRecordSchema]] = None


class SyncSaveResponse(CamelModel):
    success: bool = True
    code: str
    last_updated: int
