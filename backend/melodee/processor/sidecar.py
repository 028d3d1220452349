"""Album sidecar metadata (``album.melodee.json``)."""
import hashlib
import json
import os
from datetime import datetime
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

from melodee.models.staging_item import StagingStatus

SIDECAR_FILENAME = "album.melodee.json"
SCHEMA_VERSION = "1.0"


class SidecarError(Exception):
    """Sidecar missing or unreadable."""
    pass


class ArtistMetadata(BaseModel):
    name: str
    name_normalized: str
    directory_code: str
    sort_name: str = ""


class AlbumInfo(BaseModel):
    name: str
    name_normalized: str
    year: int = 0
    album_type: str = "Album"
    genres: list[str] = Field(default_factory=list)
    is_compilation: bool = False


class TrackMetadata(BaseModel):
    track_number: int
    disc_number: int = 1
    name: str
    duration: int = 0  # milliseconds
    file_path: str  # relative to the staging root
    file_size: int = 0
    bitrate: int = 0
    sample_rate: int = 0
    checksum: Optional[str] = None
    original_path: str


class ValidationInfo(BaseModel):
    is_valid: bool = True
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    def add_error(self, message: str):
        self.is_valid = False
        self.errors.append(message)


class AlbumMetadata(BaseModel):
    """Everything needed to promote a staged album without the ledger."""
    version: str = SCHEMA_VERSION
    processed_at: datetime
    scan_id: str
    artist: ArtistMetadata
    album: AlbumInfo
    tracks: list[TrackMetadata] = Field(default_factory=list)
    status: StagingStatus = StagingStatus.PENDING_REVIEW
    validation: ValidationInfo = Field(default_factory=ValidationInfo)

    @property
    def total_size(self) -> int:
        return sum(track.file_size for track in self.tracks)

    @property
    def total_duration(self) -> int:
        return sum(track.duration for track in self.tracks)

    def canonical_json(self) -> str:
        """Key-sorted compact JSON; the checksum is taken over this."""
        return json.dumps(self.model_dump(mode="json"), sort_keys=True, separators=(",", ":"))

    def checksum(self) -> str:
        return hashlib.sha256(self.canonical_json().encode("utf-8")).hexdigest()


def write_album_metadata(album_dir: Path, metadata: AlbumMetadata) -> tuple[Path, str]:
    """Write the sidecar into ``album_dir``.

    An existing sidecar is never replaced.

    Returns:
        Sidecar path and its checksum

    Raises:
        FileExistsError: If the directory already holds a sidecar
    """
    path = Path(album_dir) / SIDECAR_FILENAME
    if path.exists():
        raise FileExistsError(f"Album metadata already exists: {path}")
    tmp = path.with_name(f".{path.name}.tmp")
    tmp.write_text(metadata.model_dump_json(indent=2), encoding="utf-8")
    os.replace(tmp, path)
    return path, metadata.checksum()


def read_album_metadata(path: Path) -> AlbumMetadata:
    """Parse a sidecar file, or the sidecar inside an album directory."""
    path = Path(path)
    if path.is_dir():
        path = path / SIDECAR_FILENAME
    try:
        return AlbumMetadata.model_validate_json(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise SidecarError(f"Cannot read sidecar {path}: {e}") from e
    except ValidationError as e:
        raise SidecarError(f"Invalid sidecar {path}: {e}") from e
