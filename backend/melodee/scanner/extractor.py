"""Audio metadata extraction and content hashing."""
import hashlib
import logging
import re
from pathlib import Path
from typing import Any, Optional

import mutagen
from mutagen import MutagenError

from melodee.models.quarantine import QuarantineReason
from melodee.scanner.models import ExtractedFile

logger = logging.getLogger(__name__)

# Extensions the scanner dispatches to the extractor
AUDIO_EXTENSIONS = {
    ".mp3", ".flac", ".m4a", ".aac", ".ogg", ".opus", ".wma", ".wav", ".ape", ".wv",
}

_YEAR_RE = re.compile(r"(\d{4})")
_NUMBER_RE = re.compile(r"^\s*(\d+)")


class ExtractionError(Exception):
    """Tags or container could not be read."""
    def __init__(self, reason: QuarantineReason, message: str):
        self.reason = reason
        super().__init__(message)


def is_audio_file(path: Path) -> bool:
    """Check if a path has a supported audio extension."""
    return path.suffix.lower() in AUDIO_EXTENSIONS


def generate_checksum(file_path: Path) -> str:
    """Generate SHA-256 checksum of file content."""
    sha256 = hashlib.sha256()
    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            sha256.update(chunk)
    return sha256.hexdigest()


def parse_number(value: Any) -> int:
    """Parse "3", "03" or "3/12" into 3; anything else into 0."""
    if value is None:
        return 0
    if isinstance(value, (tuple, list)):
        value = value[0] if value else None
        return parse_number(value)
    if isinstance(value, int):
        return value
    match = _NUMBER_RE.match(str(value))
    return int(match.group(1)) if match else 0


def parse_year(value: Any) -> int:
    """Extract a four digit year from "1969", "1969-09-26" and friends."""
    if not value:
        return 0
    match = _YEAR_RE.search(str(value))
    return int(match.group(1)) if match else 0


class MetadataExtractor:
    """Reads container and tag data for one audio file.

    Uses mutagen's "easy" interfaces so ID3, Vorbis comments and MP4 atoms
    share the same key names. Raw ID3 frames are consulted for containers
    that have no easy wrapper (WAV, AIFF).
    """

    REQUIRED_FIELDS = ("artist", "album", "title")

    TAG_KEYS = {
        "artist": ("artist", "TPE1"),
        "album_artist": ("albumartist", "album artist", "album_artist", "TPE2"),
        "album": ("album", "TALB"),
        "title": ("title", "TIT2"),
        "track_number": ("tracknumber", "TRCK"),
        "disc_number": ("discnumber", "TPOS"),
        "year": ("date", "year", "originaldate", "TDRC", "TYER"),
        "genre": ("genre", "TCON"),
    }

    def extract(self, path: Path) -> ExtractedFile:
        """Extract one file. Never raises for per-file problems.

        Problems are recorded on the returned record as ``is_valid=False``
        with a message and a quarantine reason.
        """
        path = Path(path)
        record = ExtractedFile(file_path=str(path))

        try:
            stat = path.stat()
        except OSError as e:
            record.invalidate(QuarantineReason.OTHER.value, f"stat failed: {e}")
            return record

        record.file_size = stat.st_size
        record.modified_time = int(stat.st_mtime)

        try:
            record.file_hash = generate_checksum(path)
        except OSError as e:
            record.invalidate(QuarantineReason.OTHER.value, f"hash calculation failed: {e}")
            return record

        try:
            tags = self.read_tags(path)
        except ExtractionError as e:
            record.invalidate(e.reason.value, f"metadata extraction failed: {e}")
            return record

        for key, value in tags.items():
            setattr(record, key, value)

        missing = [name for name in self.REQUIRED_FIELDS if not getattr(record, name)]
        if missing:
            record.invalidate(
                QuarantineReason.TAG_PARSE_ERROR.value,
                f"missing required metadata ({', '.join(missing)})",
            )

        return record

    def read_tags(self, path: Path) -> dict:
        """Read normalized tag and stream info from an audio file.

        Raises:
            ExtractionError: If the container is unknown or tags are unreadable
        """
        try:
            audio = mutagen.File(str(path), easy=True)
        except MutagenError as e:
            raise ExtractionError(QuarantineReason.TAG_PARSE_ERROR, str(e) or type(e).__name__) from e
        except OSError as e:
            raise ExtractionError(QuarantineReason.OTHER, str(e)) from e

        if audio is None:
            raise ExtractionError(
                QuarantineReason.UNSUPPORTED_CONTAINER,
                f"unrecognized container for {path.suffix or 'file'}",
            )

        tags = audio.tags or {}
        info = audio.info

        def get_first(field_name: str) -> Optional[str]:
            """Get first non-empty value from the candidate tag names."""
            for key in self.TAG_KEYS[field_name]:
                try:
                    value = tags.get(key)
                except (KeyError, ValueError):
                    value = None
                if value is None:
                    continue
                # ID3 frames carry their values in .text
                value = getattr(value, "text", value)
                if isinstance(value, (list, tuple)):
                    value = next((v for v in value if str(v).strip()), None)
                if value is not None and str(value).strip():
                    return str(value).strip()
            return None

        length = getattr(info, "length", 0) or 0
        bitrate = getattr(info, "bitrate", 0) or 0

        return {
            "artist": get_first("artist"),
            "album_artist": get_first("album_artist"),
            "album": get_first("album"),
            "title": get_first("title"),
            "track_number": parse_number(get_first("track_number")),
            "disc_number": parse_number(get_first("disc_number")) or 1,
            "year": parse_year(get_first("year")),
            "genre": get_first("genre"),
            "duration": int(round(length * 1000)),
            "bitrate": int(bitrate // 1000),
            "sample_rate": int(getattr(info, "sample_rate", 0) or 0),
        }
