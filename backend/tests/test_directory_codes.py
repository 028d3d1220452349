"""Tests for directory code allocation."""
import threading

import pytest

from melodee.models.artist import Artist
from melodee.models.directory_code import ArtistDirectoryCode
from melodee.processor.directory_codes import DirectoryCodeGenerator


class TestGenerate:
    """Primary codes."""

    @pytest.mark.parametrize("name,expected", [
        ("Led Zeppelin", "LZ"),
        ("The Beatles", "BEA"),
        ("Pink Floyd", "PF"),
        ("Simon & Garfunkel", "SAG"),
        ("AC/DC", "ACD"),
        ("Sigur Rós", "SR"),
        ("Beyoncé", "BEY"),
        ("Los Lobos", "LOB"),
        ("Crosby, Stills, Nash & Young", "CSNAY"),
        ("U2", "U2"),
        ("X", "XX"),
        ("", "UNK"),
        ("!!!", "UNK"),
    ])
    def test_codes(self, name, expected):
        assert DirectoryCodeGenerator().generate(name) == expected

    def test_max_length(self):
        code = DirectoryCodeGenerator().generate("A B C D E F G H I J K")
        assert code == "BCDEFGHI"

    def test_article_only_name_is_kept(self):
        assert DirectoryCodeGenerator().generate("The The") == "TT"


class TestGetCode:
    """Allocation, collisions and persistence."""

    def test_idempotent(self):
        gen = DirectoryCodeGenerator()
        assert gen.get_code("Led Zeppelin") == "LZ"
        assert gen.get_code("led  zeppelin") == "LZ"

    def test_collision_gets_suffix(self):
        gen = DirectoryCodeGenerator()
        assert gen.get_code("Led Zeppelin") == "LZ"
        assert gen.get_code("Lazy Zebras") == "LZ-2"
        assert gen.get_code("Lost Zombies") == "LZ-3"
        assert gen.get_code("Lazy Zebras") == "LZ-2"

    def test_persisted_across_generators(self, session_factory):
        first = DirectoryCodeGenerator(session_factory=session_factory)
        assert first.get_code("Led Zeppelin") == "LZ"
        assert first.get_code("Lazy Zebras") == "LZ-2"

        second = DirectoryCodeGenerator(session_factory=session_factory)
        assert second.get_code("Lazy Zebras") == "LZ-2"
        assert second.get_code("Lost Zombies") == "LZ-3"

        with session_factory() as db:
            assert db.query(ArtistDirectoryCode).count() == 3

    def test_repeat_request_does_not_write(self, session_factory):
        gen = DirectoryCodeGenerator(session_factory=session_factory)
        gen.get_code("Pink Floyd")
        DirectoryCodeGenerator(session_factory=session_factory).get_code("Pink Floyd")

        with session_factory() as db:
            assert db.query(ArtistDirectoryCode).count() == 1

    def test_existing_catalog_artist_code_is_taken(self, session_factory):
        with session_factory() as db:
            db.add(Artist(name="Pink Floyd", normalized_name="pink floyd", directory_code="PF"))
            db.commit()

        gen = DirectoryCodeGenerator(session_factory=session_factory)
        assert gen.get_code("Pale Foxes") == "PF-2"

    def test_concurrent_requests_agree(self):
        gen = DirectoryCodeGenerator()
        codes = []
        lock = threading.Lock()

        def request(name):
            code = gen.get_code(name)
            with lock:
                codes.append((name, code))

        threads = [threading.Thread(target=request, args=(name,))
                   for name in ["Led Zeppelin", "Lazy Zebras"] * 10]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        by_artist = {}
        for name, code in codes:
            by_artist.setdefault(name, set()).add(code)
        assert all(len(v) == 1 for v in by_artist.values())
        assert by_artist["Led Zeppelin"] != by_artist["Lazy Zebras"]


class TestValidate:
    def test_valid(self):
        gen = DirectoryCodeGenerator()
        gen.validate("LZ")
        gen.validate("LZ-2")
        gen.validate("UNK")

    @pytest.mark.parametrize("code", ["", "L", "lz", "L Z", "AB/CD"])
    def test_invalid(self, code):
        with pytest.raises(ValueError):
            DirectoryCodeGenerator().validate(code)
