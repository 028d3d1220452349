"""Quarantine API endpoints."""
from typing import Dict, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from melodee.config import settings
from melodee.database import get_db
from melodee.models.quarantine import QuarantineReason
from melodee.schemas.common import Page
from melodee.schemas.quarantine import QuarantineRecordResponse, RequeueRequest
from melodee.services.quarantine import QuarantineService


router = APIRouter(prefix="/quarantine", tags=["quarantine"])


def get_quarantine_service(db: Session = Depends(get_db)) -> QuarantineService:
    return QuarantineService(db, settings.quarantine_root)


@router.get("", response_model=Page[QuarantineRecordResponse])
def list_quarantine_records(
    reason: Optional[QuarantineReason] = None,
    library_id: Optional[int] = None,
    resolved: Optional[bool] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    service: QuarantineService = Depends(get_quarantine_service),
):
    """List quarantined files."""
    return service.list(reason=reason, library_id=library_id, resolved=resolved, page=page, limit=limit)


@router.get("/stats", response_model=Dict[str, int])
def quarantine_stats(service: QuarantineService = Depends(get_quarantine_service)):
    """Unresolved records by reason."""
    return service.stats()


@router.get("/{record_id}", response_model=QuarantineRecordResponse)
def get_quarantine_record(record_id: int, service: QuarantineService = Depends(get_quarantine_service)):
    return service.get(record_id)


@router.post("/{record_id}/resolve", response_model=QuarantineRecordResponse)
def resolve_quarantine_record(record_id: int, service: QuarantineService = Depends(get_quarantine_service)):
    """Mark a record handled without moving the file."""
    return service.resolve(record_id)


@router.post("/{record_id}/requeue", response_model=QuarantineRecordResponse)
def requeue_quarantine_record(
    record_id: int,
    data: Optional[RequeueRequest] = None,
    service: QuarantineService = Depends(get_quarantine_service),
):
    """Move the file back to inbound for the next scan."""
    return service.requeue(record_id, target_dir=data.target_dir if data else None)
