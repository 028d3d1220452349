"""Short filesystem-safe codes per artist."""
import logging
import re
import threading
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from melodee.models.artist import Artist
from melodee.models.directory_code import ArtistDirectoryCode
from melodee.utils.normalize import fold_ascii, normalize_name

logger = logging.getLogger(__name__)

ARTICLES = {"the", "a", "an", "le", "la", "les", "el", "los", "las"}
UNKNOWN_CODE = "UNK"
MAX_SUFFIX = 10000

_CODE_RE = re.compile(r"^[A-Z0-9]+(?:-[0-9]+)?$")


class DirectoryCodeGenerator:
    """Allocates stable, collision-free directory codes.

    "Led Zeppelin" -> "LZ", "The Beatles" -> "BEA", and a second artist
    whose initials are also "LZ" gets "LZ-2". With a session factory the
    mapping is persisted in ``artist_directory_codes``; without one it only
    lives for the lifetime of the generator.
    """

    def __init__(
        self,
        session_factory: Optional[Callable[[], Session]] = None,
        max_length: int = 8,
        min_length: int = 2,
        suffix_pattern: str = "-{n}",
    ):
        self.session_factory = session_factory
        self.max_length = max_length
        self.min_length = min_length
        self.suffix_pattern = suffix_pattern
        self._lock = threading.Lock()
        self._by_artist: dict[str, str] = {}
        self._by_code: dict[str, str] = {}

    @staticmethod
    def artist_key(artist_name: str) -> str:
        return normalize_name(artist_name) or "unknown"

    def generate(self, artist_name: str) -> str:
        """Primary code for an artist, before collision handling."""
        text = fold_ascii(artist_name or "").lower()
        text = text.replace("&", " and ").replace(".", "").replace("/", "")
        words = [re.sub(r"[^a-z0-9]", "", word) for word in text.split()]
        words = [word for word in words if word]

        significant = [word for word in words if word not in ARTICLES] or words
        if not significant:
            return UNKNOWN_CODE

        if len(significant) == 1:
            code = significant[0][:3]
        else:
            code = "".join(word[0] for word in significant)

        letters = "".join(significant)
        if len(code) < self.min_length:
            code = (code + letters[len(code):])[:self.min_length]
        code = code.ljust(self.min_length, "x")

        return code[:self.max_length].upper()

    def get_code(self, artist_name: str) -> str:
        """Code for ``artist_name``, allocating one on first request."""
        key = self.artist_key(artist_name)

        with self._lock:
            if key in self._by_artist:
                return self._by_artist[key]

            if self.session_factory is None:
                code = self._allocate(key, artist_name, None)
            else:
                with self.session_factory() as db:
                    code = self._get_or_allocate(db, key, artist_name)

            self._by_artist[key] = code
            self._by_code[code] = key
            return code

    def _get_or_allocate(self, db: Session, key: str, artist_name: str) -> str:
        existing = db.query(ArtistDirectoryCode).filter(
            ArtistDirectoryCode.artist_normalized == key
        ).first()
        if existing:
            return existing.code

        code = self._allocate(key, artist_name, db)
        db.add(ArtistDirectoryCode(artist_normalized=key, artist_name=artist_name or key, code=code))
        try:
            db.commit()
        except IntegrityError:
            # Another process claimed the artist or the code first
            db.rollback()
            existing = db.query(ArtistDirectoryCode).filter(
                ArtistDirectoryCode.artist_normalized == key
            ).first()
            if existing is None:
                raise
            return existing.code

        logger.info(f"Assigned directory code {code} to {artist_name}")
        return code

    def _allocate(self, key: str, artist_name: str, db: Optional[Session]) -> str:
        base = self.generate(artist_name)
        if not self._taken(base, key, db):
            return base

        for n in range(2, MAX_SUFFIX + 1):
            suffix = self.suffix_pattern.format(n=n)
            candidate = base[:max(1, self.max_length - len(suffix))] + suffix
            if not self._taken(candidate, key, db):
                logger.debug(f"Directory code {base} taken, using {candidate} for {artist_name}")
                return candidate

        raise RuntimeError(f"No free directory code for {artist_name} after {MAX_SUFFIX} attempts")

    def _taken(self, code: str, key: str, db: Optional[Session]) -> bool:
        owner = self._by_code.get(code)
        if owner is not None:
            return owner != key
        if db is None:
            return False
        if db.query(ArtistDirectoryCode).filter(ArtistDirectoryCode.code == code).first():
            return True
        artist = db.query(Artist).filter(Artist.directory_code == code).first()
        return artist is not None and artist.normalized_name != key

    def validate(self, code: str) -> None:
        """Raise ValueError if ``code`` is not a usable directory code."""
        if not code:
            raise ValueError("directory code is empty")
        base = code.split("-", 1)[0]
        if len(base) < self.min_length and code != UNKNOWN_CODE:
            raise ValueError(f"directory code {code!r} is shorter than {self.min_length}")
        if len(code) > self.max_length + len(self.suffix_pattern.format(n=MAX_SUFFIX)):
            raise ValueError(f"directory code {code!r} is too long")
        if not _CODE_RE.match(code):
            raise ValueError(f"directory code {code!r} contains invalid characters")
