"""Promotion of approved staged albums into the production catalog."""
import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from melodee.models.album import Album
from melodee.models.artist import Artist
from melodee.models.staging_item import StagingItem
from melodee.models.track import Track
from melodee.processor.sidecar import AlbumMetadata
from melodee.services.errors import (
    ChecksumMismatchError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    PipelineError,
    PromotionError,
)
from melodee.services.staging import StagingRepository
from melodee.utils.normalize import normalize_name, normalize_sort_name
from melodee.utils.paths import album_directory

logger = logging.getLogger(__name__)


@dataclass
class PromotionResult:
    staging_item_id: int
    artist_id: int
    album_id: int
    track_count: int
    production_path: Path


class PromotionService:
    """Turns an approved StagingItem into Artist/Album/Track rows.

    Catalog rows are written and flushed first, the album is copied into
    production, and only then is the transaction committed. The staging copy
    is removed last, so an interrupted promotion leaves a duplicate rather
    than a loss.
    """

    def __init__(self, db: Session, production_root: Path):
        self.db = db
        self.production_root = Path(production_root)
        self.staging = StagingRepository(db)

    def promote(self, item_id: int) -> PromotionResult:
        """Promote one approved item.

        Raises:
            NotFoundError: Item does not exist
            InvalidTransitionError: Item is not approved
            ChecksumMismatchError: Sidecar changed since staging
            ConflictError: Album directory already exists in production
            PromotionError: Copy or commit failed
        """
        try:
            item = self.db.query(StagingItem).filter(StagingItem.id == item_id).with_for_update().first()
            if not item:
                raise NotFoundError(f"Staging item {item_id} not found")
            if not item.status.is_promotable:
                raise InvalidTransitionError(
                    f"Only approved items can be promoted (item {item_id} is {item.status.value})"
                )

            metadata = self.staging.read_metadata(item)
            if metadata.checksum() != item.checksum:
                raise ChecksumMismatchError(f"Sidecar checksum mismatch for staging item {item_id}")

            source = Path(item.staging_path)
            artist = self._find_or_create_artist(metadata)
            album = self._create_album(metadata, artist)
            self._create_tracks(metadata, album, artist)

            self.db.delete(item)
            self.db.flush()
        except PipelineError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PromotionError(f"Database error promoting staging item {item_id}: {e}") from e

        target = self.production_root / album.directory
        try:
            self._copy_album(source, target)
        except OSError as e:
            self.db.rollback()
            raise PromotionError(f"Failed to copy {source} to production: {e}") from e

        result = PromotionResult(
            staging_item_id=item_id,
            artist_id=artist.id,
            album_id=album.id,
            track_count=len(metadata.tracks),
            production_path=target,
        )

        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            shutil.rmtree(target, ignore_errors=True)
            raise PromotionError(f"Commit failed promoting staging item {item_id}: {e}") from e

        try:
            shutil.rmtree(source)
        except OSError as e:
            logger.warning(f"Promoted item {item_id} but could not remove staging copy {source}: {e}")

        logger.info(
            f"Promoted {metadata.artist.name} - {metadata.album.name} "
            f"({result.track_count} tracks) to {target}"
        )
        return result

    def promote_batch(self, item_ids: List[int]) -> List[dict]:
        """Promote several items, each in its own transaction."""
        results = []
        for item_id in item_ids:
            try:
                promoted = self.promote(item_id)
                results.append({"id": item_id, "success": True, "album_id": promoted.album_id, "error": None})
            except PipelineError as e:
                logger.warning(f"Promotion of staging item {item_id} failed: {e}")
                results.append({"id": item_id, "success": False, "album_id": None, "error": str(e)})
        return results

    def _find_or_create_artist(self, metadata: AlbumMetadata) -> Artist:
        normalized = normalize_name(metadata.artist.name)
        artist = self.db.query(Artist).filter(Artist.normalized_name == normalized).first()
        if artist:
            if not artist.directory_code:
                artist.directory_code = metadata.artist.directory_code
            return artist

        artist = Artist(
            name=metadata.artist.name,
            normalized_name=normalized,
            sort_name=metadata.artist.sort_name or normalize_sort_name(metadata.artist.name),
            directory_code=metadata.artist.directory_code,
        )
        self.db.add(artist)
        self.db.flush()
        logger.info(f"Created artist {artist.name} [{artist.directory_code}]")
        return artist

    def _create_album(self, metadata: AlbumMetadata, artist: Artist) -> Album:
        directory = str(album_directory(
            metadata.artist.directory_code,
            metadata.artist.name,
            metadata.album.year,
            metadata.album.name,
        ))

        existing = self.db.query(Album.id).filter(Album.directory == directory).first()
        if existing or (self.production_root / directory).exists():
            raise ConflictError(f"Album directory already exists in production: {directory}")

        album = Album(
            artist_id=artist.id,
            title=metadata.album.name,
            normalized_title=normalize_name(metadata.album.name),
            year=metadata.album.year or None,
            directory=directory,
            album_type=metadata.album.album_type,
            genres=metadata.album.genres,
            is_compilation=metadata.album.is_compilation,
            track_count=len(metadata.tracks),
            duration=metadata.total_duration,
            scan_id=metadata.scan_id,
        )
        self.db.add(album)
        self.db.flush()
        return album

    def _create_tracks(self, metadata: AlbumMetadata, album: Album, artist: Artist):
        for entry in metadata.tracks:
            file_name = Path(entry.file_path).name
            self.db.add(Track(
                album_id=album.id,
                artist_id=artist.id,
                title=entry.name,
                normalized_title=normalize_name(entry.name),
                track_number=entry.track_number,
                disc_number=entry.disc_number,
                duration=entry.duration,
                bitrate=entry.bitrate,
                sample_rate=entry.sample_rate,
                file_size=entry.file_size,
                directory=album.directory,
                file_name=file_name,
                relative_path=str(Path(album.directory) / file_name),
                checksum=entry.checksum,
            ))
        self.db.flush()

    def _copy_album(self, source: Path, target: Path):
        """Copy into a hidden sibling, then rename into place."""
        if not source.is_dir():
            raise FileNotFoundError(f"Staging directory missing: {source}")

        temp = target.parent / f".{target.name}.promoting"
        if temp.exists():
            shutil.rmtree(temp)
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copytree(source, temp)
        os.replace(temp, target)
