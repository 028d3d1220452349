"""Staging repository: review lifecycle of staged albums."""
import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from melodee.models.staging_item import StagingItem, StagingStatus
from melodee.processor.sidecar import AlbumMetadata, SidecarError, read_album_metadata
from melodee.services.errors import (
    ConflictError,
    InvalidInputError,
    InvalidTransitionError,
    NotFoundError,
)

logger = logging.getLogger(__name__)


class StagingRepository:
    """CRUD and status transitions for StagingItem rows."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, **fields) -> StagingItem:
        item = StagingItem(**fields)
        self.db.add(item)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(f"Staging item already exists for {fields.get('staging_path')}") from e
        self.db.refresh(item)
        logger.info(f"Staged {item.artist_name} - {item.album_name} ({item.track_count} tracks)")
        return item

    def create_from_result(self, result, metadata: AlbumMetadata) -> StagingItem:
        """Record an album the processor has just staged."""
        return self.create(
            scan_id=metadata.scan_id,
            staging_path=str(result.staging_path),
            metadata_file=str(result.metadata_file),
            artist_name=metadata.artist.name,
            album_name=metadata.album.name,
            track_count=len(metadata.tracks),
            total_size=metadata.total_size,
            processed_at=metadata.processed_at,
            status=StagingStatus.PENDING_REVIEW,
            checksum=result.checksum,
        )

    def get(self, item_id: int) -> StagingItem:
        item = self.db.query(StagingItem).filter(StagingItem.id == item_id).first()
        if not item:
            raise NotFoundError(f"Staging item {item_id} not found")
        return item

    def get_by_path(self, staging_path: Path) -> Optional[StagingItem]:
        return self.db.query(StagingItem).filter(StagingItem.staging_path == str(staging_path)).first()

    def list(
        self,
        status: Optional[StagingStatus] = None,
        scan_id: Optional[str] = None,
        page: int = 1,
        limit: int = 50,
    ) -> Dict[str, Any]:
        """List staging items with pagination, newest first."""
        query = self.db.query(StagingItem)
        if status:
            query = query.filter(StagingItem.status == status)
        if scan_id:
            query = query.filter(StagingItem.scan_id == scan_id)

        query = query.order_by(StagingItem.processed_at.desc(), StagingItem.id.desc())

        total = query.count()
        items = query.offset((page - 1) * limit).limit(limit).all()
        pages = (total + limit - 1) // limit

        return {
            "items": items,
            "total": total,
            "page": page,
            "limit": limit,
            "pages": pages,
        }

    def list_by_status(self, status: StagingStatus) -> List[StagingItem]:
        return (
            self.db.query(StagingItem)
            .filter(StagingItem.status == status)
            .order_by(StagingItem.artist_name, StagingItem.album_name)
            .all()
        )

    def approve(self, item_id: int, reviewer_id: Optional[int] = None, notes: Optional[str] = None) -> StagingItem:
        return self._transition(self.get(item_id), StagingStatus.APPROVED, reviewer_id, notes)

    def reject(self, item_id: int, notes: Optional[str], reviewer_id: Optional[int] = None) -> StagingItem:
        if not notes or not notes.strip():
            raise InvalidInputError("Notes are required when rejecting")
        return self._transition(self.get(item_id), StagingStatus.REJECTED, reviewer_id, notes.strip())

    def _transition(
        self,
        item: StagingItem,
        target: StagingStatus,
        reviewer_id: Optional[int],
        notes: Optional[str],
    ) -> StagingItem:
        if not item.status.can_transition_to(target):
            raise InvalidTransitionError(
                f"Cannot change staging item {item.id} from {item.status.value} to {target.value}"
            )

        item.status = target
        item.reviewed_by = reviewer_id
        item.reviewed_at = datetime.now(timezone.utc)
        if notes is not None:
            item.notes = notes
        self.db.commit()
        self.db.refresh(item)

        logger.info(f"Staging item {item.id} {target.value} by {reviewer_id or 'operator'}")
        return item

    def delete(self, item_id: int, delete_files: bool = False) -> None:
        """Hard-delete a rejected item, optionally with its staging directory."""
        item = self.get(item_id)
        if not item.status.is_deletable:
            raise InvalidTransitionError(
                f"Only rejected items can be deleted (item {item_id} is {item.status.value})"
            )

        staging_path = Path(item.staging_path)
        self.db.delete(item)
        self.db.commit()
        logger.info(f"Deleted staging item {item_id}")

        if delete_files and staging_path.exists():
            try:
                shutil.rmtree(staging_path)
                logger.info(f"Removed staging directory {staging_path}")
            except OSError as e:
                logger.error(f"Failed to remove staging directory {staging_path}: {e}")

    def stats(self) -> Dict[str, int]:
        """Counts by status plus tracks and bytes still in play."""
        counts = dict(
            self.db.query(StagingItem.status, func.count(StagingItem.id))
            .group_by(StagingItem.status)
            .all()
        )
        tracks, size = (
            self.db.query(
                func.coalesce(func.sum(StagingItem.track_count), 0),
                func.coalesce(func.sum(StagingItem.total_size), 0),
            )
            .filter(StagingItem.status != StagingStatus.REJECTED)
            .one()
        )

        result = {status.value: counts.get(status, 0) for status in StagingStatus}
        result["total"] = sum(counts.values())
        result["total_tracks"] = int(tracks)
        result["total_size"] = int(size)
        return result

    def read_metadata(self, item: StagingItem) -> AlbumMetadata:
        try:
            return read_album_metadata(Path(item.metadata_file))
        except SidecarError as e:
            raise InvalidInputError(str(e)) from e

    def verify_checksum(self, item: StagingItem) -> bool:
        """True if the sidecar on disk still matches the stored checksum."""
        return self.read_metadata(item).checksum() == item.checksum
