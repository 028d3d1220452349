"""Inbound directory scanner.

One walker feeds a bounded pool of extraction workers. A single writer
thread drains their results into the ledger in batches, so the ledger
only ever sees one writer.
"""
import logging
import os
import queue
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from melodee.models.quarantine import QuarantineReason
from melodee.scanner.extractor import MetadataExtractor, is_audio_file
from melodee.scanner.ledger import LedgerError, ScanLedger
from melodee.scanner.models import ExtractedFile, ScanStats

logger = logging.getLogger(__name__)

_DONE = object()


class ScanRootError(Exception):
    """The scan root is missing or not a directory."""
    pass


class FileScanner:
    """Walks an inbound tree and records every audio file in a ledger."""

    def __init__(
        self,
        ledger: ScanLedger,
        workers: int = 4,
        extractor: Optional[MetadataExtractor] = None,
        batch_size: int = 1000,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.ledger = ledger
        self.workers = max(1, workers)
        self.extractor = extractor or MetadataExtractor()
        self.batch_size = batch_size
        self.cancel_event = cancel_event or threading.Event()

        self._abort = threading.Event()
        self._write_error: Optional[LedgerError] = None
        self._lock = threading.Lock()
        self._total = 0
        self._valid = 0

    def _stopped(self) -> bool:
        return self.cancel_event.is_set() or self._abort.is_set()

    def scan_directory(self, root: Path) -> ScanStats:
        """Scan ``root`` recursively.

        Raises:
            ScanRootError: If root does not exist or is not a directory
            LedgerError: If a batch could not be written
        """
        root = Path(root)
        if not root.is_dir():
            raise ScanRootError(f"Scan root does not exist or is not a directory: {root}")

        started_at = datetime.now(timezone.utc)
        start = time.monotonic()
        logger.info(f"Scanning {root} with {self.workers} workers")

        paths: queue.Queue = queue.Queue(maxsize=self.workers * 64)
        results: queue.Queue = queue.Queue(maxsize=self.batch_size * 2)

        writer = threading.Thread(target=self._write_results, args=(results,), name="ledger-writer")
        writer.start()

        pool = [
            threading.Thread(target=self._extract_worker, args=(paths, results), name=f"scan-worker-{i}")
            for i in range(self.workers)
        ]
        for thread in pool:
            thread.start()

        try:
            self._walk(root, paths)
        finally:
            for _ in pool:
                paths.put(_DONE)
            for thread in pool:
                thread.join()
            results.put(_DONE)
            writer.join()

        if self._write_error is not None:
            raise self._write_error

        duration = time.monotonic() - start
        stats = ScanStats(
            total_files=self._total,
            valid_files=self._valid,
            invalid_files=self._total - self._valid,
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
            duration=duration,
            files_per_second=self._total / duration if duration > 0 else 0.0,
            cancelled=self.cancel_event.is_set(),
        )

        if stats.cancelled:
            logger.warning(f"Scan cancelled after {stats.total_files} files")
        else:
            logger.info(
                f"Scan complete: {stats.total_files} files "
                f"({stats.valid_files} valid, {stats.invalid_files} invalid) "
                f"in {duration:.1f}s"
            )
        return stats

    def _walk(self, root: Path, paths: queue.Queue):
        def on_error(error: OSError):
            logger.warning(f"Cannot read directory {error.filename}: {error.strerror}")

        for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
            dirnames.sort()
            for name in sorted(filenames):
                if self._stopped():
                    return
                path = Path(dirpath) / name
                if is_audio_file(path):
                    paths.put(path)

    def _extract_worker(self, paths: queue.Queue, results: queue.Queue):
        while True:
            path = paths.get()
            if path is _DONE:
                return
            if self._stopped():
                continue
            try:
                record = self.extractor.extract(path)
            except Exception as e:
                logger.exception(f"Unexpected error extracting {path}")
                record = ExtractedFile(file_path=str(path))
                record.invalidate(QuarantineReason.OTHER.value, f"extraction failed: {e}")
            results.put(record)

    def _write_results(self, results: queue.Queue):
        batch = []
        while True:
            item = results.get()
            if item is not _DONE:
                batch.append(item)
            if batch and (item is _DONE or len(batch) >= self.batch_size):
                self._flush(batch)
                batch = []
            if item is _DONE:
                return

    def _flush(self, batch: list):
        if self._write_error is not None:
            return
        try:
            self.ledger.insert_batch(batch)
        except LedgerError as e:
            logger.error(f"Ledger write failed: {e}")
            self._write_error = e
            self._abort.set()
            return
        with self._lock:
            self._total += len(batch)
            self._valid += sum(1 for record in batch if record.is_valid)
        logger.debug(f"Wrote {len(batch)} files to ledger ({self._total} total)")
