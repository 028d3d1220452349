"""Staging schemas."""
from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field

from melodee.models.staging_item import StagingStatus


class StagingItemResponse(BaseModel):
    """Staged album awaiting review."""
    id: int
    scan_id: str
    staging_path: str
    metadata_file: str
    artist_name: str
    album_name: str
    track_count: int
    total_size: int
    processed_at: datetime
    status: StagingStatus
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    notes: Optional[str] = None
    checksum: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StagingStatsResponse(BaseModel):
    total: int
    pending_review: int
    approved: int
    rejected: int
    total_tracks: int
    total_size: int


class ApproveRequest(BaseModel):
    """Approve staged album request."""
    notes: Optional[str] = None
    reviewer_id: Optional[int] = None


class RejectRequest(BaseModel):
    """Reject staged album request. Notes are required."""
    notes: Optional[str] = None
    reviewer_id: Optional[int] = None


class PromoteResponse(BaseModel):
    staging_item_id: int
    artist_id: int
    album_id: int
    track_count: int
    production_path: str


class PromoteBatchRequest(BaseModel):
    ids: List[int] = Field(..., min_length=1)


class PromoteBatchResult(BaseModel):
    id: int
    success: bool
    album_id: Optional[int] = None
    error: Optional[str] = None
