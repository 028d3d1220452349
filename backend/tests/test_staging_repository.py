"""Tests for the staging repository state machine."""
import pytest

from melodee.models.staging_item import STAGING_TRANSITIONS, StagingItem, StagingStatus
from melodee.services.errors import (
    ConflictError,
    InvalidInputError,
    InvalidTransitionError,
    NotFoundError,
)
from melodee.services.staging import StagingRepository


def test_transition_table_is_exhaustive():
    assert set(STAGING_TRANSITIONS) == set(StagingStatus)
    assert StagingStatus.PENDING_REVIEW.can_transition_to(StagingStatus.APPROVED)
    assert StagingStatus.PENDING_REVIEW.can_transition_to(StagingStatus.REJECTED)
    for target in StagingStatus:
        assert not StagingStatus.APPROVED.can_transition_to(target)
        assert not StagingStatus.REJECTED.can_transition_to(target)


def test_new_items_are_pending(staged_album):
    item = staged_album()
    assert item.status == StagingStatus.PENDING_REVIEW
    assert item.id is not None


def test_get_missing(db):
    with pytest.raises(NotFoundError):
        StagingRepository(db).get(999)


def test_approve(db, staged_album):
    item = staged_album()
    approved = StagingRepository(db).approve(item.id, reviewer_id=3, notes="looks good")

    assert approved.status == StagingStatus.APPROVED
    assert approved.reviewed_by == 3
    assert approved.reviewed_at is not None
    assert approved.notes == "looks good"


def test_approve_twice_is_transition_error(db, staged_album):
    repo = StagingRepository(db)
    item = staged_album()
    repo.approve(item.id)

    with pytest.raises(InvalidTransitionError):
        repo.approve(item.id)


def test_reject_requires_notes(db, staged_album):
    item = staged_album()
    with pytest.raises(InvalidInputError):
        StagingRepository(db).reject(item.id, notes="  ")
    assert StagingRepository(db).get(item.id).status == StagingStatus.PENDING_REVIEW


def test_rejected_cannot_be_approved(db, staged_album):
    repo = StagingRepository(db)
    item = staged_album()
    repo.reject(item.id, notes="wrong tags")

    with pytest.raises(InvalidTransitionError):
        repo.approve(item.id)


def test_delete_requires_rejected(db, staged_album):
    repo = StagingRepository(db)
    item = staged_album()

    with pytest.raises(InvalidTransitionError):
        repo.delete(item.id)

    repo.approve(item.id)
    with pytest.raises(InvalidTransitionError):
        repo.delete(item.id)


def test_delete_rejected_with_files(db, staged_album):
    from pathlib import Path

    repo = StagingRepository(db)
    item = staged_album()
    staging_path = Path(item.staging_path)
    repo.reject(item.id, notes="duplicate")

    repo.delete(item.id, delete_files=True)

    assert db.query(StagingItem).count() == 0
    assert not staging_path.exists()


def test_delete_rejected_keeps_files_by_default(db, staged_album):
    from pathlib import Path

    repo = StagingRepository(db)
    item = staged_album()
    repo.reject(item.id, notes="duplicate")
    repo.delete(item.id)

    assert Path(item.staging_path).exists()


def test_duplicate_staging_path_conflicts(db, staged_album):
    item = staged_album()
    with pytest.raises(ConflictError):
        StagingRepository(db).create(
            scan_id="scan_x", staging_path=item.staging_path, metadata_file=item.metadata_file,
            artist_name="x", album_name="y", processed_at=item.processed_at, checksum="0" * 64,
        )


def test_list_filters_and_paginates(db, staged_album):
    repo = StagingRepository(db)
    first = staged_album(album="One", code="A1")
    staged_album(album="Two", code="A2")
    staged_album(album="Three", code="A3")
    repo.approve(first.id)

    pending = repo.list(status=StagingStatus.PENDING_REVIEW, limit=1)
    assert pending["total"] == 2
    assert pending["pages"] == 2
    assert len(pending["items"]) == 1

    approved = repo.list(status=StagingStatus.APPROVED)
    assert [i.album_name for i in approved["items"]] == ["One"]

    assert repo.list(scan_id="scan_other")["total"] == 0
    assert [i.album_name for i in repo.list_by_status(StagingStatus.PENDING_REVIEW)] == ["Three", "Two"]


def test_stats(db, staged_album):
    repo = StagingRepository(db)
    a = staged_album(album="One", code="A1")
    b = staged_album(album="Two", code="A2")
    staged_album(album="Three", code="A3")
    repo.approve(a.id)
    repo.reject(b.id, notes="bad rip")

    stats = repo.stats()

    assert stats["total"] == 3
    assert stats["pending_review"] == 1
    assert stats["approved"] == 1
    assert stats["rejected"] == 1
    assert stats["total_tracks"] == 4
    assert stats["total_size"] > 0


def test_verify_checksum(db, staged_album):
    from pathlib import Path

    repo = StagingRepository(db)
    item = staged_album()
    assert repo.verify_checksum(item)

    sidecar = Path(item.metadata_file)
    sidecar.write_text(sidecar.read_text().replace("Black Dog", "White Dog"))
    assert not repo.verify_checksum(item)
