"""Quarantine schemas."""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel

from melodee.models.quarantine import QuarantineReason


class QuarantineRecordResponse(BaseModel):
    """Quarantined file."""
    id: int
    file_path: str
    original_path: str
    reason: QuarantineReason
    message: Optional[str] = None
    library_id: Optional[int] = None
    scan_id: Optional[str] = None
    resolved: bool
    resolved_at: Optional[datetime] = None
    requeued_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RequeueRequest(BaseModel):
    """Where to put the file back (default: where it came from)."""
    target_dir: Optional[str] = None
