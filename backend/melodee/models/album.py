"""Album model."""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from melodee.database import Base


class Album(Base):
    """Album in the production catalog."""

    __tablename__ = "albums"

    id = Column(Integer, primary_key=True, index=True)
    artist_id = Column(Integer, ForeignKey("artists.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=False, index=True)
    normalized_title = Column(String(255), nullable=False, index=True)
    year = Column(Integer, index=True)
    # Relative to the production root: CODE/Artist/Year - Album
    directory = Column(String(512), nullable=False, unique=True)
    album_type = Column(String(50), default="Album")
    genres = Column(JSON)
    is_compilation = Column(Boolean, default=False)
    track_count = Column(Integer, default=0)
    duration = Column(Integer, default=0)  # milliseconds
    scan_id = Column(String(64), index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    artist = relationship("Artist", back_populates="albums")
    tracks = relationship("Track", back_populates="album", lazy="dynamic", order_by="Track.disc_number, Track.track_number")

    def __repr__(self):
        return f"<Album {self.title}>"
