"""Per-scan SQLite ledger."""
import logging
import time
from collections import defaultdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

from sqlalchemy import create_engine, event, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from melodee.scanner.grouping import (
    album_group_id,
    group_hash,
    pick_display_name,
    vote_year,
)
from melodee.scanner.models import (
    AlbumGroup,
    ExtractedFile,
    LedgerBase,
    ScannedFile,
    ScanStats,
)

logger = logging.getLogger(__name__)

LEDGER_PREFIX = "scan_"
LEDGER_SUFFIX = ".db"


class LedgerError(Exception):
    """The ledger could not be created, read or written."""
    pass


def _set_sqlite_pragmas(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.close()


class ScanLedger:
    """SQLite file holding every file discovered by one scan run.

    The scan id is the file stem (``scan_20240101_120000``).
    """

    def __init__(self, path: Path, started_at: Optional[datetime] = None):
        self.path = Path(path)
        self.scan_id = self.path.stem
        self.started_at = started_at

        try:
            self.engine = create_engine(
                f"sqlite:///{self.path}",
                connect_args={"check_same_thread": False},
            )
            event.listen(self.engine, "connect", _set_sqlite_pragmas)
            LedgerBase.metadata.create_all(bind=self.engine)
        except SQLAlchemyError as e:
            raise LedgerError(f"Cannot initialize ledger {self.path}: {e}") from e

        self._session_factory = sessionmaker(
            bind=self.engine, autocommit=False, autoflush=False, expire_on_commit=False
        )

    @classmethod
    def create(cls, output_dir: Path) -> "ScanLedger":
        """Create a new ledger named after the current timestamp."""
        output_dir = Path(output_dir)
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise LedgerError(f"Cannot create ledger directory {output_dir}: {e}") from e

        now = datetime.now(timezone.utc)
        stem = f"{LEDGER_PREFIX}{now.astimezone().strftime('%Y%m%d_%H%M%S')}"
        path = output_dir / f"{stem}{LEDGER_SUFFIX}"
        counter = 1
        while path.exists():
            counter += 1
            path = output_dir / f"{stem}_{counter}{LEDGER_SUFFIX}"

        logger.info(f"Creating scan ledger {path}")
        return cls(path, started_at=now)

    @classmethod
    def open(cls, path: Path) -> "ScanLedger":
        """Open an existing ledger for reading."""
        path = Path(path)
        if not path.is_file():
            raise LedgerError(f"Scan ledger not found: {path}")
        return cls(path)

    def close(self):
        self.engine.dispose()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    # ----------------------------------------------------------------- writes

    def insert_batch(self, records: Iterable[ExtractedFile]) -> int:
        """Insert extracted files in a single transaction."""
        rows = [ScannedFile(**vars(record)) for record in records]
        if not rows:
            return 0
        with self._session_factory() as session:
            try:
                session.add_all(rows)
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                raise LedgerError(f"Failed to write batch of {len(rows)} files: {e}") from e
        return len(rows)

    def compute_album_grouping(self) -> int:
        """Assign album groups to every valid file.

        Stage one stores ``artist::album`` hashes for rows that lack one.
        Stage two votes a year per hash and writes ``hash_year`` ids.

        Returns:
            Number of album groups
        """
        with self._session_factory() as session:
            try:
                pending = session.execute(
                    select(ScannedFile.id, ScannedFile.artist, ScannedFile.album_artist, ScannedFile.album)
                    .where(ScannedFile.is_valid.is_(True), ScannedFile.album_group_hash.is_(None))
                ).all()
                if pending:
                    session.execute(
                        update(ScannedFile),
                        [
                            {"id": row.id, "album_group_hash": group_hash(row.album_artist or row.artist, row.album)}
                            for row in pending
                        ],
                    )

                years_by_hash = defaultdict(list)
                ids_by_hash = defaultdict(list)
                for row in session.execute(
                    select(ScannedFile.id, ScannedFile.album_group_hash, ScannedFile.year)
                    .where(ScannedFile.is_valid.is_(True), ScannedFile.album_group_hash.is_not(None))
                ):
                    years_by_hash[row.album_group_hash].append(row.year)
                    ids_by_hash[row.album_group_hash].append(row.id)

                assignments = []
                for hash_value, ids in ids_by_hash.items():
                    group_id = album_group_id(hash_value, vote_year(years_by_hash[hash_value]))
                    assignments.extend({"id": file_id, "album_group_id": group_id} for file_id in ids)
                if assignments:
                    session.execute(update(ScannedFile), assignments)

                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                raise LedgerError(f"Album grouping failed: {e}") from e

        logger.info(f"Grouped {len(pending)} new files into {len(ids_by_hash)} albums")
        return len(ids_by_hash)

    # ------------------------------------------------------------------ reads

    def get_album_groups(self) -> list[AlbumGroup]:
        """Album groups ordered by artist, year and album."""
        members = defaultdict(list)
        with self._session_factory() as session:
            rows = session.scalars(
                select(ScannedFile)
                .where(ScannedFile.is_valid.is_(True), ScannedFile.album_group_id.is_not(None))
                .order_by(ScannedFile.disc_number, ScannedFile.track_number, ScannedFile.file_path)
            ).all()
        for row in rows:
            members[row.album_group_id].append(row)

        groups = []
        for group_id, files in members.items():
            groups.append(AlbumGroup(
                album_group_id=group_id,
                artist_name=pick_display_name(f.grouping_artist for f in files),
                album_name=pick_display_name(f.album for f in files),
                year=vote_year(f.year for f in files),
                track_count=len(files),
                total_size=sum(f.file_size or 0 for f in files),
                file_paths=[f.file_path for f in files],
            ))

        groups.sort(key=lambda g: (g.artist_name.lower(), g.year, g.album_name.lower()))
        return groups

    def get_files_by_album_group(self, group_id: str) -> list[ScannedFile]:
        """Files in one album group ordered by disc, track and path."""
        with self._session_factory() as session:
            return list(session.scalars(
                select(ScannedFile)
                .where(ScannedFile.album_group_id == group_id, ScannedFile.is_valid.is_(True))
                .order_by(ScannedFile.disc_number, ScannedFile.track_number, ScannedFile.file_path)
            ))

    def get_invalid_files(self) -> list[ScannedFile]:
        with self._session_factory() as session:
            return list(session.scalars(
                select(ScannedFile)
                .where(ScannedFile.is_valid.is_(False))
                .order_by(ScannedFile.file_path)
            ))

    def get_stats(self) -> ScanStats:
        """Counts straight from the ledger."""
        with self._session_factory() as session:
            total = session.scalar(select(func.count(ScannedFile.id))) or 0
            valid = session.scalar(
                select(func.count(ScannedFile.id)).where(ScannedFile.is_valid.is_(True))
            ) or 0
            albums = session.scalar(
                select(func.count(func.distinct(ScannedFile.album_group_id)))
                .where(ScannedFile.album_group_id.is_not(None))
            ) or 0
            first_created = session.scalar(select(func.min(ScannedFile.created_at)))

        started_at = self.started_at
        if started_at is None and first_created:
            started_at = datetime.fromtimestamp(first_created, tz=timezone.utc)

        return ScanStats(
            total_files=total,
            valid_files=valid,
            invalid_files=total - valid,
            albums_found=albums,
            started_at=started_at,
        )


def cleanup_expired_ledgers(directory: Path, max_age_days: int = 90, now: Optional[float] = None) -> list[Path]:
    """Delete ledger files older than the retention window.

    WAL and shared-memory side files are removed with their ledger.
    """
    directory = Path(directory)
    if not directory.is_dir():
        return []

    cutoff = (now if now is not None else time.time()) - max_age_days * 86400
    removed = []
    for path in sorted(directory.glob(f"{LEDGER_PREFIX}*{LEDGER_SUFFIX}")):
        try:
            if path.stat().st_mtime >= cutoff:
                continue
            for side in (path, Path(f"{path}-wal"), Path(f"{path}-shm")):
                side.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove expired ledger {path}: {e}")
            continue
        removed.append(path)
        logger.info(f"Removed expired ledger {path.name}")

    return removed
