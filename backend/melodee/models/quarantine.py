"""Quarantine record model for files that failed validation or moves."""
import enum

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum
from sqlalchemy.sql import func
from melodee.database import Base


class QuarantineReason(str, enum.Enum):
    """Why a file was quarantined."""
    CHECKSUM_MISMATCH = "checksum_mismatch"
    TAG_PARSE_ERROR = "tag_parse_error"
    UNSUPPORTED_CONTAINER = "unsupported_container"
    MOVE_FAILURE = "move_failure"
    OTHER = "other"


class QuarantineRecord(Base):
    """A quarantined file and where it came from.

    Records are never deleted automatically; operators resolve or requeue them.
    """

    __tablename__ = "quarantine_records"

    id = Column(Integer, primary_key=True, index=True)
    file_path = Column(String(1000), nullable=False)  # Current location
    original_path = Column(String(1000), nullable=False)
    reason = Column(
        Enum(
            QuarantineReason,
            name="quarantine_reason",
            native_enum=False,
            length=30,
            values_callable=lambda members: [m.value for m in members],
        ),
        nullable=False,
        index=True,
    )
    message = Column(String(2000))
    library_id = Column(Integer, index=True)
    scan_id = Column(String(64), index=True)
    resolved = Column(Boolean, default=False, nullable=False, index=True)
    resolved_at = Column(DateTime(timezone=True))
    requeued_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<QuarantineRecord {self.original_path} ({self.reason.value})>"
