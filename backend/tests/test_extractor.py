"""Tests for metadata extraction."""
import hashlib

import mutagen

from melodee.models.quarantine import QuarantineReason
from melodee.scanner import extractor as extractor_module
from melodee.scanner.extractor import (
    MetadataExtractor,
    generate_checksum,
    is_audio_file,
    parse_number,
    parse_year,
)


def test_parse_number():
    assert parse_number("3/12") == 3
    assert parse_number("07") == 7
    assert parse_number(["2"]) == 2
    assert parse_number(None) == 0
    assert parse_number("side A") == 0


def test_parse_year():
    assert parse_year("1969-09-26") == 1969
    assert parse_year("1971") == 1971
    assert parse_year("") == 0
    assert parse_year("unknown") == 0


def test_is_audio_file(tmp_path):
    assert is_audio_file(tmp_path / "a.FLAC")
    assert is_audio_file(tmp_path / "a.opus")
    assert not is_audio_file(tmp_path / "cover.jpg")
    assert not is_audio_file(tmp_path / "notes.txt")


def test_checksum_matches_sha256(tmp_path):
    path = tmp_path / "data.bin"
    path.write_bytes(b"x" * 20000)
    assert generate_checksum(path) == hashlib.sha256(b"x" * 20000).hexdigest()


def test_extract_valid_flac(tmp_path, make_flac):
    path = make_flac(
        tmp_path / "01.flac",
        artist="The Beatles", albumartist="The Beatles", album="Abbey Road",
        title="Come Together", tracknumber="1/17", discnumber="1/1",
        date="1969-09-26", genre="Rock",
    )

    record = MetadataExtractor().extract(path)

    assert record.is_valid
    assert record.validation_error is None
    assert record.artist == "The Beatles"
    assert record.album_artist == "The Beatles"
    assert record.album == "Abbey Road"
    assert record.title == "Come Together"
    assert record.track_number == 1
    assert record.disc_number == 1
    assert record.year == 1969
    assert record.genre == "Rock"
    assert record.duration == 2000
    assert record.sample_rate == 44100
    assert record.file_size == path.stat().st_size
    assert record.file_hash == generate_checksum(path)


def test_missing_required_tags(tmp_path, make_flac):
    path = make_flac(tmp_path / "untitled.flac", artist="Someone", album="Something")

    record = MetadataExtractor().extract(path)

    assert not record.is_valid
    assert record.error_reason == QuarantineReason.TAG_PARSE_ERROR.value
    assert "title" in record.validation_error
    # Invalid rows still carry a hash
    assert record.file_hash


def test_garbage_file_is_invalid(tmp_path):
    path = tmp_path / "noise.mp3"
    path.write_bytes(b"this is not audio at all" * 10)

    record = MetadataExtractor().extract(path)

    assert not record.is_valid
    assert record.error_reason in {
        QuarantineReason.TAG_PARSE_ERROR.value,
        QuarantineReason.UNSUPPORTED_CONTAINER.value,
    }


def test_unrecognized_container(tmp_path, monkeypatch):
    path = tmp_path / "odd.wma"
    path.write_bytes(b"\x00" * 64)
    monkeypatch.setattr(extractor_module.mutagen, "File", lambda *args, **kwargs: None)

    record = MetadataExtractor().extract(path)

    assert not record.is_valid
    assert record.error_reason == QuarantineReason.UNSUPPORTED_CONTAINER.value


def test_mutagen_error_is_tag_parse_error(tmp_path, monkeypatch):
    path = tmp_path / "broken.flac"
    path.write_bytes(b"\x00" * 64)

    def boom(*args, **kwargs):
        raise mutagen.MutagenError("corrupt header")

    monkeypatch.setattr(extractor_module.mutagen, "File", boom)

    record = MetadataExtractor().extract(path)

    assert not record.is_valid
    assert record.error_reason == QuarantineReason.TAG_PARSE_ERROR.value
    assert "corrupt header" in record.validation_error


def test_missing_file(tmp_path):
    record = MetadataExtractor().extract(tmp_path / "gone.flac")

    assert not record.is_valid
    assert record.error_reason == QuarantineReason.OTHER.value
