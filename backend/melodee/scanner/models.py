"""Scan ledger models.

The ledger is a per-run SQLite database with its own declarative base so it
never mixes with the catalog/staging store.
"""
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from sqlalchemy import Column, Integer, String, Boolean, BigInteger, Index
from sqlalchemy.orm import declarative_base

LedgerBase = declarative_base()


class ScannedFile(LedgerBase):
    """One row per discovered file, valid or not."""

    __tablename__ = "scanned_files"
    __table_args__ = (
        Index("idx_artist_album", "artist", "album", "year"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    file_path = Column(String, nullable=False, unique=True)
    file_size = Column(BigInteger)
    file_hash = Column(String(64), index=True)
    modified_time = Column(Integer)

    # Extracted metadata
    artist = Column(String)
    album_artist = Column(String)
    album = Column(String)
    title = Column(String)
    track_number = Column(Integer)
    disc_number = Column(Integer)
    year = Column(Integer)
    genre = Column(String)
    duration = Column(Integer)  # milliseconds
    bitrate = Column(Integer)  # kbps
    sample_rate = Column(Integer)  # Hz

    # Validation
    is_valid = Column(Boolean, default=True, index=True)
    validation_error = Column(String)
    error_reason = Column(String(30))  # QuarantineReason value for invalid rows

    # Grouping (computed after scan)
    album_group_hash = Column(String, index=True)
    album_group_id = Column(String, index=True)

    created_at = Column(Integer, default=lambda: int(time.time()))

    @property
    def grouping_artist(self) -> str:
        """Album artist when tagged, otherwise the track artist."""
        return self.album_artist or self.artist or ""

    def __repr__(self):
        return f"<ScannedFile {self.file_path}>"


@dataclass
class ExtractedFile:
    """Result of extracting one file, ready to be written to the ledger."""
    file_path: str
    file_size: int = 0
    modified_time: int = 0
    file_hash: Optional[str] = None
    artist: Optional[str] = None
    album_artist: Optional[str] = None
    album: Optional[str] = None
    title: Optional[str] = None
    track_number: int = 0
    disc_number: int = 1
    year: int = 0
    genre: Optional[str] = None
    duration: int = 0
    bitrate: int = 0
    sample_rate: int = 0
    is_valid: bool = True
    validation_error: Optional[str] = None
    error_reason: Optional[str] = None

    def invalidate(self, reason: str, message: str) -> None:
        self.is_valid = False
        self.error_reason = reason
        self.validation_error = message


@dataclass
class AlbumGroup:
    """Files identified as one album release. Never persisted."""
    album_group_id: str
    artist_name: str
    album_name: str
    year: int
    track_count: int = 0
    total_size: int = 0
    file_paths: list[str] = field(default_factory=list)


@dataclass
class ScanStats:
    """Statistics about a scan run."""
    total_files: int = 0
    valid_files: int = 0
    invalid_files: int = 0
    albums_found: int = 0
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    duration: float = 0.0  # seconds
    files_per_second: float = 0.0
    cancelled: bool = False
