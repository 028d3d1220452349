"""Inbound scanning: extraction, ledger and album grouping."""
from melodee.scanner.extractor import (
    AUDIO_EXTENSIONS,
    ExtractionError,
    MetadataExtractor,
    generate_checksum,
    is_audio_file,
)
from melodee.scanner.grouping import (
    album_group_id,
    group_hash,
    normalize_album_name,
    normalize_artist_name,
    vote_year,
)
from melodee.scanner.ledger import LedgerError, ScanLedger, cleanup_expired_ledgers
from melodee.scanner.models import AlbumGroup, ExtractedFile, ScannedFile, ScanStats
from melodee.scanner.scanner import FileScanner, ScanRootError

__all__ = [
    "AUDIO_EXTENSIONS",
    "AlbumGroup",
    "ExtractedFile",
    "ExtractionError",
    "FileScanner",
    "LedgerError",
    "MetadataExtractor",
    "ScanLedger",
    "ScanRootError",
    "ScanStats",
    "ScannedFile",
    "album_group_id",
    "cleanup_expired_ledgers",
    "generate_checksum",
    "group_hash",
    "is_audio_file",
    "normalize_album_name",
    "normalize_artist_name",
    "vote_year",
]
