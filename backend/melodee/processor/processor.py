"""Moves album groups from a scan ledger into the staging tree."""
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from contextlib import nullcontext
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from melodee.models.quarantine import QuarantineReason
from melodee.processor.directory_codes import DirectoryCodeGenerator
from melodee.processor.rate_limiter import TokenBucket
from melodee.processor.sidecar import (
    SIDECAR_FILENAME,
    AlbumInfo,
    AlbumMetadata,
    ArtistMetadata,
    TrackMetadata,
    write_album_metadata,
)
from melodee.scanner.grouping import normalize_album_name, normalize_artist_name
from melodee.scanner.ledger import ScanLedger
from melodee.scanner.models import AlbumGroup, ScannedFile
from melodee.services.errors import PipelineError
from melodee.services.quarantine import QuarantineService
from melodee.services.staging import StagingRepository
from melodee.utils.normalize import normalize_sort_name
from melodee.utils.paths import album_directory, format_filename, safe_move_file

logger = logging.getLogger(__name__)


@dataclass
class ProcessorConfig:
    staging_root: Path
    workers: int = 4
    rate_limit: int = 0  # file moves per second, 0 = unlimited
    dry_run: bool = False
    quarantine_root: Optional[Path] = None
    library_id: Optional[int] = None


@dataclass
class ProcessResult:
    """Outcome of staging one album group."""
    album_group_id: str
    artist_name: str
    album_name: str
    year: int = 0
    staging_path: Optional[Path] = None
    metadata_file: Optional[Path] = None
    track_count: int = 0
    total_size: int = 0
    checksum: Optional[str] = None
    staging_item_id: Optional[int] = None
    success: bool = False
    errors: list[str] = field(default_factory=list)
    error: Optional[str] = None  # album-level failure


@dataclass
class ProcessStats:
    total_albums: int = 0
    success_albums: int = 0
    failed_albums: int = 0
    total_tracks: int = 0
    total_size: int = 0
    quarantined: int = 0
    duration: float = 0.0
    cancelled: bool = False

    @classmethod
    def from_results(cls, results: list[ProcessResult], **kwargs) -> "ProcessStats":
        success = [r for r in results if r.success]
        return cls(
            total_albums=len(results),
            success_albums=len(success),
            failed_albums=len(results) - len(success),
            total_tracks=sum(r.track_count for r in results),
            total_size=sum(r.total_size for r in results),
            **kwargs,
        )

    @property
    def has_errors(self) -> bool:
        return self.failed_albums > 0


class Processor:
    """Stages every album group of one scan.

    Albums are processed concurrently on a thread pool. Physical moves are
    throttled by an optional token bucket. A file that fails to move marks
    its album invalid but never stops the rest of the run.
    """

    def __init__(
        self,
        config: ProcessorConfig,
        ledger: ScanLedger,
        code_generator: Optional[DirectoryCodeGenerator] = None,
        session_factory: Optional[Callable[[], Session]] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.config = config
        self.ledger = ledger
        self.session_factory = session_factory
        self.codes = code_generator or DirectoryCodeGenerator(
            session_factory=None if config.dry_run else session_factory
        )
        self.cancel_event = cancel_event or threading.Event()
        self.stats = ProcessStats()
        self._quarantined = 0
        self._lock = threading.Lock()
        self._claimed: set[Path] = set()

    def process_all(self) -> list[ProcessResult]:
        """Process every album group in the ledger."""
        start = time.monotonic()
        groups = self.ledger.get_album_groups()
        logger.info(
            f"Processing {len(groups)} albums from {self.ledger.scan_id} "
            f"with {self.config.workers} workers"
            + (" (dry run)" if self.config.dry_run else "")
        )

        if not self.config.dry_run:
            self.quarantine_invalid_files()

        limiter = None
        if self.config.rate_limit > 0 and not self.config.dry_run:
            limiter = TokenBucket(self.config.rate_limit)

        with limiter if limiter is not None else nullcontext():
            with ThreadPoolExecutor(max_workers=max(1, self.config.workers)) as executor:
                outcomes = list(executor.map(lambda g: self.process_album(g, limiter), groups))

        results = [r for r in outcomes if r is not None]
        self.stats = ProcessStats.from_results(
            results,
            quarantined=self._quarantined,
            duration=time.monotonic() - start,
            cancelled=self.cancel_event.is_set(),
        )
        logger.info(
            f"Processed {self.stats.total_albums} albums: {self.stats.success_albums} staged, "
            f"{self.stats.failed_albums} with errors, {self.stats.total_tracks} tracks"
        )
        return results

    def process_album(self, group: AlbumGroup, limiter: Optional[TokenBucket] = None) -> Optional[ProcessResult]:
        """Stage one album group. Returns None if cancelled before starting."""
        if self.cancel_event.is_set():
            return None

        result = ProcessResult(
            album_group_id=group.album_group_id,
            artist_name=group.artist_name,
            album_name=group.album_name,
            year=group.year,
        )

        files = self.ledger.get_files_by_album_group(group.album_group_id)
        if not files:
            result.error = "no files found for album group"
            return result

        code = self.codes.get_code(group.artist_name)
        relative_dir = album_directory(code, group.artist_name, group.year, group.album_name)
        staging_dir = Path(self.config.staging_root) / relative_dir
        result.staging_path = staging_dir

        conflict = self._claim_staging_dir(staging_dir)
        if conflict:
            result.error = conflict
            logger.error(f"{group.artist_name} - {group.album_name}: {conflict}")
            return result

        if not self.config.dry_run:
            try:
                staging_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                result.error = f"cannot create staging directory: {e}"
                logger.error(f"{group.artist_name} - {group.album_name}: {result.error}")
                return result

        metadata = AlbumMetadata(
            processed_at=datetime.now(timezone.utc),
            scan_id=self.ledger.scan_id,
            artist=ArtistMetadata(
                name=group.artist_name,
                name_normalized=normalize_artist_name(group.artist_name),
                directory_code=code,
                sort_name=normalize_sort_name(group.artist_name),
            ),
            album=AlbumInfo(
                name=group.album_name,
                name_normalized=normalize_album_name(group.album_name),
                year=group.year,
                genres=sorted({f.genre for f in files if f.genre}),
                is_compilation=len({f.artist for f in files if f.artist}) > 1,
            ),
        )

        failed_moves: list[tuple[ScannedFile, str]] = []
        for scanned in files:
            if self.cancel_event.is_set():
                metadata.validation.add_error("processing cancelled before all files were moved")
                break

            source = Path(scanned.file_path)
            file_name = format_filename(scanned.disc_number, scanned.track_number, scanned.title, source.suffix.lower())

            if not self.config.dry_run:
                if limiter is not None and not limiter.acquire(self.cancel_event):
                    metadata.validation.add_error("processing cancelled before all files were moved")
                    break
                try:
                    safe_move_file(source, staging_dir / file_name)
                except OSError as e:
                    message = f"Failed to move {source.name}: {e}"
                    logger.warning(f"{group.artist_name} - {group.album_name}: {message}")
                    metadata.validation.add_error(message)
                    result.errors.append(message)
                    failed_moves.append((scanned, str(e)))
                    continue

            metadata.tracks.append(TrackMetadata(
                track_number=scanned.track_number or 0,
                disc_number=scanned.disc_number or 1,
                name=scanned.title,
                duration=scanned.duration or 0,
                file_path=str(relative_dir / file_name),
                file_size=scanned.file_size or 0,
                bitrate=scanned.bitrate or 0,
                sample_rate=scanned.sample_rate or 0,
                checksum=scanned.file_hash,
                original_path=scanned.file_path,
            ))

        if len({(t.disc_number, t.track_number) for t in metadata.tracks}) < len(metadata.tracks):
            metadata.validation.warnings.append("duplicate disc/track numbers")

        result.track_count = len(metadata.tracks)
        result.total_size = metadata.total_size

        if self.config.dry_run:
            result.checksum = metadata.checksum()
        elif metadata.tracks:
            self._write_album(result, metadata, staging_dir)
        else:
            result.error = "no files could be moved"

        for scanned, reason in failed_moves:
            self._quarantine(scanned.file_path, QuarantineReason.MOVE_FAILURE, reason, errors=result.errors)

        result.success = result.error is None and metadata.validation.is_valid
        return result

    def _write_album(self, result: ProcessResult, metadata: AlbumMetadata, staging_dir: Path):
        try:
            result.metadata_file, result.checksum = write_album_metadata(staging_dir, metadata)
        except OSError as e:
            result.error = f"cannot write album metadata: {e}"
            logger.error(f"{result.artist_name} - {result.album_name}: {result.error}")
            return

        if self.session_factory is None:
            return

        with self.session_factory() as db:
            try:
                item = StagingRepository(db).create_from_result(result, metadata)
            except (PipelineError, SQLAlchemyError) as e:
                result.error = f"cannot record staging item: {e}"
                logger.error(f"{result.artist_name} - {result.album_name}: {result.error}")
                return
            result.staging_item_id = item.id

    def quarantine_invalid_files(self) -> int:
        """Quarantine every ledger row that failed validation."""
        count = 0
        for scanned in self.ledger.get_invalid_files():
            if self.cancel_event.is_set():
                break
            try:
                reason = QuarantineReason(scanned.error_reason or QuarantineReason.OTHER.value)
            except ValueError:
                reason = QuarantineReason.OTHER
            if self._quarantine(scanned.file_path, reason, scanned.validation_error or ""):
                count += 1
        return count

    def _quarantine(
        self,
        file_path: str,
        reason: QuarantineReason,
        message: str,
        errors: Optional[list[str]] = None,
    ) -> bool:
        if self.config.dry_run or self.session_factory is None or self.config.quarantine_root is None:
            logger.warning(f"Not quarantining {file_path} ({reason.value}): {message}")
            return False

        with self.session_factory() as db:
            service = QuarantineService(db, Path(self.config.quarantine_root))
            try:
                if service.is_quarantined(file_path):
                    return False
                service.quarantine_file(
                    file_path,
                    reason,
                    message,
                    library_id=self.config.library_id,
                    scan_id=self.ledger.scan_id,
                )
            except SQLAlchemyError as e:
                db.rollback()
                error = f"Failed to record quarantine for {Path(file_path).name}: {e}"
                logger.error(error)
                if errors is not None:
                    errors.append(error)
                return False

        with self._lock:
            self._quarantined += 1
        return True

    def _claim_staging_dir(self, staging_dir: Path) -> Optional[str]:
        """Reserve an album directory, refusing one that already holds a staged album."""
        with self._lock:
            if staging_dir in self._claimed:
                return f"staging directory already used by another album in this run: {staging_dir}"
            self._claimed.add(staging_dir)

        if (staging_dir / SIDECAR_FILENAME).exists():
            return f"album already staged at {staging_dir}"

        if self.session_factory is None:
            return None
        with self.session_factory() as db:
            try:
                item = StagingRepository(db).get_by_path(staging_dir)
            except SQLAlchemyError as e:
                return f"cannot check existing staging items: {e}"
        if item is not None:
            return f"album already staged at {staging_dir} (staging item {item.id}, {item.status.value})"
        return None
