"""Tests for the staging and quarantine API."""
import inspect

import pytest

from melodee.api import api_router
from melodee.config import settings
from melodee.models.album import Album
from melodee.models.quarantine import QuarantineReason
from melodee.services.quarantine import QuarantineService


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["name"] == "Melodee Ingest"


class TestStagingApi:
    """/api/staging endpoints."""

    def test_list(self, client, staged_album):
        staged_album(album="One", code="A1")
        staged_album(album="Two", code="A2")

        response = client.get("/api/staging")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert {item["album_name"] for item in data["items"]} == {"One", "Two"}
        assert data["items"][0]["status"] == "pending_review"

    def test_list_by_status(self, client, staged_album):
        item = staged_album()
        client.post(f"/api/staging/{item.id}/approve")

        assert client.get("/api/staging?status=approved").json()["total"] == 1
        assert client.get("/api/staging?status=pending_review").json()["total"] == 0

    def test_get_and_missing(self, client, staged_album):
        item = staged_album()

        response = client.get(f"/api/staging/{item.id}")
        assert response.status_code == 200
        assert response.json()["artist_name"] == "Led Zeppelin"

        missing = client.get("/api/staging/999")
        assert missing.status_code == 404
        assert missing.json()["error"] == "NotFoundError"

    def test_stats(self, client, staged_album):
        staged_album()
        data = client.get("/api/staging/stats").json()
        assert data["pending_review"] == 1
        assert data["total"] == 1
        assert data["total_tracks"] == 2

    def test_approve(self, client, staged_album):
        item = staged_album()

        response = client.post(f"/api/staging/{item.id}/approve", json={"notes": "ok", "reviewer_id": 5})

        assert response.status_code == 200
        assert response.json()["status"] == "approved"
        assert response.json()["reviewed_by"] == 5

    def test_approve_twice_conflicts(self, client, staged_album):
        item = staged_album()
        client.post(f"/api/staging/{item.id}/approve")

        response = client.post(f"/api/staging/{item.id}/approve")

        assert response.status_code == 409

    def test_reject_requires_notes(self, client, staged_album):
        item = staged_album()

        assert client.post(f"/api/staging/{item.id}/reject", json={}).status_code == 400

        response = client.post(f"/api/staging/{item.id}/reject", json={"notes": "wrong album art"})
        assert response.status_code == 200
        assert response.json()["status"] == "rejected"
        assert response.json()["notes"] == "wrong album art"

    def test_delete_only_rejected(self, client, staged_album):
        item = staged_album()

        assert client.delete(f"/api/staging/{item.id}").status_code == 409

        client.post(f"/api/staging/{item.id}/reject", json={"notes": "dupe"})
        response = client.delete(f"/api/staging/{item.id}?delete_files=true")
        assert response.status_code == 200
        assert response.json()["id"] == item.id
        assert response.json()["files_removed"] is True
        assert client.get(f"/api/staging/{item.id}").status_code == 404

    def test_promote(self, client, db, staged_album, tmp_path, monkeypatch):
        monkeypatch.setattr(settings, "production_root", str(tmp_path / "production"))
        item = staged_album()

        assert client.post(f"/api/staging/{item.id}/promote").status_code == 409

        client.post(f"/api/staging/{item.id}/approve")
        response = client.post(f"/api/staging/{item.id}/promote")

        assert response.status_code == 200
        data = response.json()
        assert data["track_count"] == 2
        assert data["production_path"].startswith(str(tmp_path / "production"))
        assert db.query(Album).count() == 1
        assert client.get(f"/api/staging/{item.id}").status_code == 404

    def test_promote_batch(self, client, staged_album, tmp_path, monkeypatch):
        monkeypatch.setattr(settings, "production_root", str(tmp_path / "production"))
        item = staged_album()
        client.post(f"/api/staging/{item.id}/approve")

        response = client.post("/api/staging/promote", json={"ids": [item.id, 999]})

        assert response.status_code == 200
        assert [r["success"] for r in response.json()] == [True, False]


class TestQuarantineApi:
    """/api/quarantine endpoints."""

    @pytest.fixture
    def record(self, db, tmp_path, monkeypatch):
        monkeypatch.setattr(settings, "quarantine_root", str(tmp_path / "quarantine"))
        source = tmp_path / "inbound" / "bad.flac"
        source.parent.mkdir(parents=True)
        source.write_bytes(b"bad")
        service = QuarantineService(db, tmp_path / "quarantine")
        return service.quarantine_file(str(source), QuarantineReason.TAG_PARSE_ERROR, "no tags", library_id=1)

    def test_list(self, client, record):
        data = client.get("/api/quarantine?reason=tag_parse_error&resolved=false").json()
        assert data["total"] == 1
        assert data["items"][0]["reason"] == "tag_parse_error"
        assert data["items"][0]["message"] == "no tags"

        assert client.get("/api/quarantine?library_id=2").json()["total"] == 0

    def test_resolve(self, client, record):
        response = client.post(f"/api/quarantine/{record.id}/resolve")
        assert response.status_code == 200
        assert response.json()["resolved"] is True

        assert client.post(f"/api/quarantine/{record.id}/resolve").status_code == 409

    def test_requeue(self, client, record):
        response = client.post(f"/api/quarantine/{record.id}/requeue")

        assert response.status_code == 200
        assert response.json()["requeued_at"] is not None
        assert response.json()["file_path"] == record.original_path

    def test_requeue_traversal_is_bad_request(self, client, record):
        response = client.post(f"/api/quarantine/{record.id}/requeue", json={"target_dir": "/tmp/../etc"})
        assert response.status_code == 400

    def test_missing_record(self, client):
        assert client.post("/api/quarantine/999/resolve").status_code == 404
        assert client.post("/api/quarantine/999/requeue").status_code == 404

    def test_stats(self, client, record):
        data = client.get("/api/quarantine/stats").json()
        assert data["tag_parse_error"] == 1
        assert data["total"] == 1


def test_routes_run_in_threadpool():
    for route in api_router.routes:
        assert not inspect.iscoroutinefunction(route.endpoint), route.path
