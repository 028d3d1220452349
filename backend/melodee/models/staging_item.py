"""Staging item model for albums awaiting operator review."""
import enum

from sqlalchemy import Column, Integer, String, BigInteger, DateTime, Enum
from sqlalchemy.sql import func
from melodee.database import Base


class StagingStatus(str, enum.Enum):
    """Review lifecycle of a staged album.

    pending_review --approve--> approved --promote--> (row deleted)
    pending_review --reject--> rejected --delete--> (row deleted)
    """
    PENDING_REVIEW = "pending_review"
    APPROVED = "approved"
    REJECTED = "rejected"

    def can_transition_to(self, target: "StagingStatus") -> bool:
        return target in STAGING_TRANSITIONS[self]

    @property
    def is_promotable(self) -> bool:
        return self is StagingStatus.APPROVED

    @property
    def is_deletable(self) -> bool:
        return self is StagingStatus.REJECTED


# Every status must appear here; terminal states map to an empty set.
STAGING_TRANSITIONS: dict[StagingStatus, frozenset[StagingStatus]] = {
    StagingStatus.PENDING_REVIEW: frozenset({StagingStatus.APPROVED, StagingStatus.REJECTED}),
    StagingStatus.APPROVED: frozenset(),
    StagingStatus.REJECTED: frozenset(),
}
assert set(STAGING_TRANSITIONS) == set(StagingStatus)


class StagingItem(Base):
    """One album moved into the staging tree by the processor."""

    __tablename__ = "staging_items"

    id = Column(Integer, primary_key=True, index=True)
    scan_id = Column(String(64), nullable=False, index=True)
    staging_path = Column(String(1000), nullable=False, unique=True)
    metadata_file = Column(String(1000), nullable=False)
    artist_name = Column(String(255), nullable=False, index=True)
    album_name = Column(String(255), nullable=False, index=True)
    track_count = Column(Integer, default=0)
    total_size = Column(BigInteger, default=0)
    processed_at = Column(DateTime(timezone=True), nullable=False)
    status = Column(
        Enum(
            StagingStatus,
            name="staging_status",
            native_enum=False,
            length=20,
            values_callable=lambda members: [m.value for m in members],
        ),
        default=StagingStatus.PENDING_REVIEW,
        nullable=False,
        index=True,
    )
    reviewed_by = Column(Integer)
    reviewed_at = Column(DateTime(timezone=True))
    notes = Column(String(1000))
    checksum = Column(String(64), nullable=False)  # SHA-256 of the sidecar
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<StagingItem {self.artist_name} - {self.album_name} ({self.status.value})>"
