"""Quarantine service for files that cannot be processed."""
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from melodee.models.quarantine import QuarantineReason, QuarantineRecord
from melodee.services.errors import ConflictError, InvalidInputError, NotFoundError, PipelineError
from melodee.utils.paths import safe_move_file, unique_path

logger = logging.getLogger(__name__)


class QuarantineService:
    """Records failing files and moves them out of the inbound tree.

    Files land in ``{quarantine_root}/{reason}/{YYYY-MM-DD}/``.
    """

    def __init__(self, db: Session, quarantine_root: Path):
        self.db = db
        self.quarantine_root = Path(quarantine_root)

    def quarantine_file(
        self,
        file_path: str,
        reason: QuarantineReason,
        message: str,
        library_id: Optional[int] = None,
        scan_id: Optional[str] = None,
    ) -> QuarantineRecord:
        """Quarantine a file and record why.

        If the file cannot be relocated it is recorded where it is.
        """
        source = Path(file_path)
        current = source

        if source.is_file():
            target_dir = self.quarantine_root / reason.value / datetime.now(timezone.utc).strftime("%Y-%m-%d")
            try:
                target = unique_path(target_dir / source.name)
                safe_move_file(source, target)
                current = target
            except OSError as e:
                logger.warning(f"Could not relocate {source} to quarantine: {e}")
                message = f"{message} (not relocated: {e})" if message else f"not relocated: {e}"

        record = QuarantineRecord(
            file_path=str(current),
            original_path=str(source),
            reason=reason,
            message=message,
            library_id=library_id,
            scan_id=scan_id,
        )
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)

        logger.warning(f"Quarantined {source} ({reason.value}): {message}")
        return record

    def is_quarantined(self, original_path: str) -> bool:
        """True if an unresolved record exists for the original path."""
        return self.db.query(QuarantineRecord.id).filter(
            QuarantineRecord.original_path == str(original_path),
            QuarantineRecord.resolved.is_(False),
        ).first() is not None

    def get(self, record_id: int) -> QuarantineRecord:
        record = self.db.query(QuarantineRecord).filter(QuarantineRecord.id == record_id).first()
        if not record:
            raise NotFoundError(f"Quarantine record {record_id} not found")
        return record

    def list(
        self,
        reason: Optional[QuarantineReason] = None,
        library_id: Optional[int] = None,
        resolved: Optional[bool] = None,
        page: int = 1,
        limit: int = 50,
    ) -> Dict[str, Any]:
        """List quarantine records with filtering and pagination."""
        query = self.db.query(QuarantineRecord)

        if reason:
            query = query.filter(QuarantineRecord.reason == reason)
        if library_id is not None:
            query = query.filter(QuarantineRecord.library_id == library_id)
        if resolved is not None:
            query = query.filter(QuarantineRecord.resolved.is_(resolved))

        query = query.order_by(QuarantineRecord.created_at.desc(), QuarantineRecord.id.desc())

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

    def resolve(self, record_id: int) -> QuarantineRecord:
        """Mark a record handled; the file is presumed fixed elsewhere."""
        record = self.get(record_id)
        if record.resolved:
            raise ConflictError(f"Quarantine record {record_id} is already resolved")

        record.resolved = True
        record.resolved_at = datetime.now(timezone.utc)
        self.db.commit()
        self.db.refresh(record)

        logger.info(f"Resolved quarantine record {record_id}")
        return record

    def requeue(self, record_id: int, target_dir: Optional[str] = None) -> QuarantineRecord:
        """Move the file back for re-processing and close the record.

        Args:
            record_id: Record to requeue
            target_dir: Directory to move the file into (default: its original location)
        """
        record = self.get(record_id)
        if record.resolved:
            raise ConflictError(f"Quarantine record {record_id} is already resolved")

        current = Path(record.file_path)
        if target_dir:
            if ".." in Path(target_dir).parts:
                raise InvalidInputError("Requeue target must not contain '..'")
            destination = Path(target_dir) / Path(record.original_path).name
        else:
            destination = Path(record.original_path)

        if current != destination:
            if not current.is_file():
                raise NotFoundError(f"Quarantined file missing: {current}")
            if destination.exists():
                raise ConflictError(f"Requeue destination already exists: {destination}")
            try:
                safe_move_file(current, destination)
            except OSError as e:
                raise PipelineError(f"Failed to requeue {current}: {e}") from e

        now = datetime.now(timezone.utc)
        record.file_path = str(destination)
        record.resolved = True
        record.resolved_at = now
        record.requeued_at = now
        self.db.commit()
        self.db.refresh(record)

        logger.info(f"Requeued {destination} from quarantine")
        return record

    def stats(self) -> Dict[str, int]:
        """Unresolved record counts by reason."""
        counts = dict(
            self.db.query(QuarantineRecord.reason, func.count(QuarantineRecord.id))
            .filter(QuarantineRecord.resolved.is_(False))
            .group_by(QuarantineRecord.reason)
            .all()
        )
        result = {reason.value: counts.get(reason, 0) for reason in QuarantineReason}
        result["total"] = sum(counts.values())
        return result
