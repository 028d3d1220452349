"""Persisted artist to directory code mapping."""
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from melodee.database import Base


class ArtistDirectoryCode(Base):
    """Stable directory code assigned to an artist.

    Codes are allocated before the artist exists in the catalog, so the
    mapping lives in its own table keyed by normalized artist name.
    """

    __tablename__ = "artist_directory_codes"

    id = Column(Integer, primary_key=True, index=True)
    artist_normalized = Column(String(255), nullable=False, unique=True, index=True)
    artist_name = Column(String(255), nullable=False)
    code = Column(String(20), nullable=False, unique=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<ArtistDirectoryCode {self.artist_name} -> {self.code}>"
