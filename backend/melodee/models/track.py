"""Track model."""
from sqlalchemy import Column, Integer, String, BigInteger, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from melodee.database import Base


class Track(Base):
    """Individual track in the production catalog."""

    __tablename__ = "tracks"
    __table_args__ = (
        UniqueConstraint('album_id', 'disc_number', 'track_number', name='uq_track_album_position'),
    )

    id = Column(Integer, primary_key=True, index=True)
    album_id = Column(Integer, ForeignKey("albums.id", ondelete="CASCADE"), nullable=False)
    # Denormalized for read performance
    artist_id = Column(Integer, ForeignKey("artists.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False, index=True)
    normalized_title = Column(String(255), nullable=False, index=True)
    track_number = Column(Integer, nullable=False)
    disc_number = Column(Integer, default=1)
    duration = Column(Integer)  # milliseconds
    bitrate = Column(Integer)  # kbps
    sample_rate = Column(Integer)  # Hz
    file_size = Column(BigInteger)  # bytes
    directory = Column(String(512), nullable=False)
    file_name = Column(String(255), nullable=False)
    relative_path = Column(String(1000), nullable=False, index=True)
    checksum = Column(String(64))  # SHA-256 of file content
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    album = relationship("Album", back_populates="tracks")

    def __repr__(self):
        return f"<Track {self.track_number}. {self.title}>"
