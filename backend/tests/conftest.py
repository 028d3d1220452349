"""Pytest fixtures for Melodee ingest tests."""
import os
import struct

# Settings are read at import time; keep tests off the default PostgreSQL URL
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
# Wide Rich output so table cells are not wrapped
os.environ.setdefault("COLUMNS", "200")

import pytest
from fastapi.testclient import TestClient
from mutagen.flac import FLAC
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from melodee.main import app
from melodee.database import Base, get_db
from melodee.scanner.ledger import ScanLedger

# In-memory SQLite for tests
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """Create a test client with the test database."""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def session_factory(tmp_path):
    """File-backed catalog database for code paths that open their own sessions."""
    file_engine = create_engine(
        f"sqlite:///{tmp_path / 'catalog.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=file_engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=file_engine)
    yield factory
    file_engine.dispose()


def build_flac_bytes(sample_rate: int = 44100, channels: int = 2, bits: int = 16, total_samples: int = 88200) -> bytes:
    """Minimal FLAC stream: marker plus a single STREAMINFO block, no frames."""
    packed = (sample_rate << 44) | ((channels - 1) << 41) | ((bits - 1) << 36) | total_samples
    streaminfo = (
        struct.pack(">HH", 4096, 4096)
        + b"\x00\x00\x00"
        + b"\x00\x00\x00"
        + packed.to_bytes(8, "big")
        + b"\x00" * 16
    )
    return b"fLaC" + bytes([0x80]) + len(streaminfo).to_bytes(3, "big") + streaminfo


@pytest.fixture
def make_flac():
    """Factory writing a tagged FLAC file.

    Usage: make_flac(path, artist="...", album="...", title="...", tracknumber="1", date="1969")
    """
    def _make(path, sample_rate=44100, total_samples=88200, **tags):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(build_flac_bytes(sample_rate=sample_rate, total_samples=total_samples))
        if tags:
            audio = FLAC(str(path))
            for key, value in tags.items():
                if value is not None:
                    audio[key] = str(value)
            audio.save()
        return path

    return _make


@pytest.fixture
def abbey_road(tmp_path, make_flac):
    """Inbound tree with two Abbey Road tracks in different subdirectories."""
    inbound = tmp_path / "inbound"
    make_flac(
        inbound / "disc-a" / "come_together.flac",
        artist="The Beatles", album="Abbey Road", title="Come Together",
        tracknumber="1/17", date="1969-09-26",
    )
    make_flac(
        inbound / "elsewhere" / "nested" / "something.flac",
        artist="The Beatles", album="Abbey Road", title="Something",
        tracknumber="2", date="1969",
    )
    return inbound


@pytest.fixture
def ledger(tmp_path):
    """Fresh scan ledger, closed after the test."""
    ledger = ScanLedger.create(tmp_path / "ledgers")
    yield ledger
    ledger.close()


@pytest.fixture
def staged_album(db, tmp_path):
    """Factory staging an album on disk and recording it as pending review."""
    from datetime import datetime, timezone
    from melodee.processor.sidecar import (
        AlbumInfo, AlbumMetadata, ArtistMetadata, TrackMetadata, write_album_metadata,
    )
    from melodee.services.staging import StagingRepository
    from melodee.utils.paths import album_directory

    def _stage(artist="Led Zeppelin", album="Led Zeppelin IV", year=1971, code="LZ", tracks=None):
        tracks = tracks or [(1, 1, "Black Dog"), (1, 2, "Rock and Roll")]
        relative = album_directory(code, artist, year, album)
        album_dir = tmp_path / "staging" / relative
        album_dir.mkdir(parents=True)

        entries = []
        for disc, number, title in tracks:
            name = f"{number:02d} - {title}.flac"
            (album_dir / name).write_bytes(f"{artist}/{title}".encode())
            entries.append(TrackMetadata(
                track_number=number, disc_number=disc, name=title, duration=240000,
                file_path=str(relative / name), file_size=len(f"{artist}/{title}"),
                bitrate=900, sample_rate=44100, checksum="0" * 64,
                original_path=f"/inbound/{name}",
            ))

        metadata = AlbumMetadata(
            processed_at=datetime.now(timezone.utc),
            scan_id="scan_20260101_120000",
            artist=ArtistMetadata(name=artist, name_normalized=artist.lower().replace(" ", ""),
                                  directory_code=code, sort_name=artist),
            album=AlbumInfo(name=album, name_normalized=album.lower().replace(" ", ""), year=year,
                            genres=["Rock"]),
            tracks=entries,
        )
        metadata_file, checksum = write_album_metadata(album_dir, metadata)

        return StagingRepository(db).create(
            scan_id=metadata.scan_id,
            staging_path=str(album_dir),
            metadata_file=str(metadata_file),
            artist_name=artist,
            album_name=album,
            track_count=len(entries),
            total_size=metadata.total_size,
            processed_at=metadata.processed_at,
            checksum=checksum,
        )

    return _stage
