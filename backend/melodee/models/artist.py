"""Artist model."""
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from melodee.database import Base


class Artist(Base):
    """Artist in the production catalog.

    Found-or-created by ``normalized_name`` during promotion.
    """

    __tablename__ = "artists"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    normalized_name = Column(String(255), nullable=False, unique=True, index=True)
    sort_name = Column(String(255), index=True)
    directory_code = Column(String(20), index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    albums = relationship("Album", back_populates="artist", lazy="dynamic")

    def __repr__(self):
        return f"<Artist {self.name} [{self.directory_code}]>"
