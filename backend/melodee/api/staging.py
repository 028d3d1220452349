"""Staging review API endpoints."""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from melodee.config import settings
from melodee.database import get_db
from melodee.models.staging_item import StagingStatus
from melodee.schemas.common import DeletedResponse, Page
from melodee.schemas.staging import (
    ApproveRequest,
    PromoteBatchRequest,
    PromoteBatchResult,
    PromoteResponse,
    RejectRequest,
    StagingItemResponse,
    StagingStatsResponse,
)
from melodee.services.promotion import PromotionService
from melodee.services.staging import StagingRepository


router = APIRouter(prefix="/staging", tags=["staging"])


@router.get("", response_model=Page[StagingItemResponse])
def list_staging_items(
    status: Optional[StagingStatus] = None,
    scan_id: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    """List staged albums, optionally filtered by status or scan."""
    return StagingRepository(db).list(status=status, scan_id=scan_id, page=page, limit=limit)


@router.get("/stats", response_model=StagingStatsResponse)
def staging_stats(db: Session = Depends(get_db)):
    """Counts by status plus tracks and bytes awaiting promotion."""
    return StagingRepository(db).stats()


@router.get("/{item_id}", response_model=StagingItemResponse)
def get_staging_item(item_id: int, db: Session = Depends(get_db)):
    return StagingRepository(db).get(item_id)


@router.post("/{item_id}/approve", response_model=StagingItemResponse)
def approve_staging_item(
    item_id: int,
    data: Optional[ApproveRequest] = None,
    db: Session = Depends(get_db),
):
    data = data or ApproveRequest()
    return StagingRepository(db).approve(item_id, reviewer_id=data.reviewer_id, notes=data.notes)


@router.post("/{item_id}/reject", response_model=StagingItemResponse)
def reject_staging_item(
    item_id: int,
    data: RejectRequest,
    db: Session = Depends(get_db),
):
    return StagingRepository(db).reject(item_id, notes=data.notes, reviewer_id=data.reviewer_id)


@router.post("/promote", response_model=list[PromoteBatchResult])
def promote_staging_batch(data: PromoteBatchRequest, db: Session = Depends(get_db)):
    """Promote several approved items, each in its own transaction."""
    return PromotionService(db, settings.production_root).promote_batch(data.ids)


@router.post("/{item_id}/promote", response_model=PromoteResponse)
def promote_staging_item(item_id: int, db: Session = Depends(get_db)):
    """Promote an approved item into the production catalog."""
    result = PromotionService(db, settings.production_root).promote(item_id)
    return PromoteResponse(
        staging_item_id=result.staging_item_id,
        artist_id=result.artist_id,
        album_id=result.album_id,
        track_count=result.track_count,
        production_path=str(result.production_path),
    )


@router.delete("/{item_id}", response_model=DeletedResponse)
def delete_staging_item(
    item_id: int,
    delete_files: bool = False,
    db: Session = Depends(get_db),
):
    """Delete a rejected item, optionally removing its staged files."""
    StagingRepository(db).delete(item_id, delete_files=delete_files)
    return DeletedResponse(id=item_id, files_removed=delete_files, message=f"Staging item {item_id} deleted")
