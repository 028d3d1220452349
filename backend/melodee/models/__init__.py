"""SQLAlchemy models for the catalog and staging store."""
from melodee.models.artist import Artist
from melodee.models.album import Album
from melodee.models.track import Track
from melodee.models.staging_item import StagingItem, StagingStatus
from melodee.models.quarantine import QuarantineRecord, QuarantineReason
from melodee.models.directory_code import ArtistDirectoryCode

__all__ = [
    "Artist",
    "Album",
    "Track",
    "StagingItem",
    "StagingStatus",
    "QuarantineRecord",
    "QuarantineReason",
    "ArtistDirectoryCode",
]
