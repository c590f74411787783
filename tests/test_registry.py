"""
Tests for the orphan registry (set-on-insert upsert and review workflow).
"""

from datetime import datetime, timedelta, timezone

import pytest

from assetgc.exceptions import InvalidTransitionError, RecordNotFoundError
from assetgc.models import OrphanCandidateRecord, OrphanStatus, ResourceKind


def make_record(public_id, kind=ResourceKind.IMAGE, discovered_at=None, **kwargs):
    record = OrphanCandidateRecord(id=public_id, kind=kind, classification="unknown", **kwargs)
    if discovered_at is not None:
        record.discovered_at = discovered_at
    return record


class TestUpsertCandidates:
    """Set-on-insert semantics."""

    def test_inserts_new_records(self, registry):
        result = registry.upsert_candidates([make_record("a"), make_record("b")])

        assert result.inserted == 2
        assert result.matched == 0
        assert registry.count() == 2
        assert registry.get("a").status is OrphanStatus.PENDING_REVIEW

    def test_existing_records_are_untouched(self, registry):
        registry.upsert_candidates([make_record("a", discovered_at="2024-01-01T00:00:00+00:00", folder="old")])

        result = registry.upsert_candidates(
            [make_record("a", discovered_at="2025-06-01T00:00:00+00:00", folder="new"), make_record("b")]
        )

        assert result.inserted == 1
        assert result.matched == 1
        record = registry.get("a")
        assert record.discovered_at == "2024-01-01T00:00:00+00:00"
        assert record.folder == "old"

    def test_status_survives_rediscovery(self, registry):
        registry.upsert_candidates([make_record("a")])
        registry.transition("a", OrphanStatus.ERROR, error="manual")

        registry.upsert_candidates([make_record("a")])

        assert registry.get("a").status is OrphanStatus.ERROR

    def test_duplicates_in_one_batch_collapse(self, registry):
        result = registry.upsert_candidates([make_record("a", folder="first"), make_record("a", folder="second")])

        assert result.inserted == 1
        assert registry.get("a").folder == "first"

    def test_rerun_is_idempotent(self, registry):
        records = [make_record(f"id-{i}") for i in range(5)]
        registry.upsert_candidates(records)
        second = registry.upsert_candidates(records)

        assert second.inserted == 0
        assert second.matched == 5
        assert registry.count() == 5


class TestQueries:
    """Tests for get/list_candidates/count."""

    def test_get_missing(self, registry):
        assert registry.get("missing") is None

    def test_list_orders_by_discovery(self, registry):
        now = datetime.now(timezone.utc)
        registry.upsert_candidates(
            [
                make_record("new", discovered_at=now.isoformat()),
                make_record("old", discovered_at=(now - timedelta(days=3)).isoformat()),
                make_record("mid", discovered_at=(now - timedelta(days=1)).isoformat()),
            ]
        )

        assert [r.id for r in registry.list_candidates()] == ["old", "mid", "new"]
        assert [r.id for r in registry.list_candidates(limit=1, offset=1)] == ["mid"]
        before = now - timedelta(hours=12)
        assert [r.id for r in registry.list_candidates(discovered_before=before)] == ["old", "mid"]

    def test_filter_and_count_by_status(self, registry):
        registry.upsert_candidates([make_record("a"), make_record("b"), make_record("c")])
        registry.transition("b", OrphanStatus.ERROR, error="x")

        assert [r.id for r in registry.list_candidates(status=OrphanStatus.ERROR)] == ["b"]
        assert registry.count(OrphanStatus.PENDING_REVIEW) == 2
        assert registry.status_counts() == {"pending_review": 2, "deletion_queued": 0, "error": 1}


class TestTransitions:
    """Status only moves forward."""

    def test_pending_to_queued_to_error(self, registry):
        registry.upsert_candidates([make_record("a")])

        queued = registry.transition("a", OrphanStatus.DELETION_QUEUED)
        failed = registry.transition("a", OrphanStatus.ERROR, error="x" * 600)

        assert queued.status is OrphanStatus.DELETION_QUEUED
        assert failed.status is OrphanStatus.ERROR
        assert len(registry.get("a").last_error) == 500
        assert registry.get("a").status_updated_at is not None

    @pytest.mark.parametrize(
        "steps, target",
        [
            ([], OrphanStatus.PENDING_REVIEW),
            ([OrphanStatus.DELETION_QUEUED], OrphanStatus.PENDING_REVIEW),
            ([OrphanStatus.ERROR], OrphanStatus.PENDING_REVIEW),
            ([OrphanStatus.ERROR], OrphanStatus.DELETION_QUEUED),
        ],
    )
    def test_backward_transitions_rejected(self, registry, steps, target):
        registry.upsert_candidates([make_record("a")])
        for step in steps:
            registry.transition("a", step)

        with pytest.raises(InvalidTransitionError):
            registry.transition("a", target)

    def test_missing_record(self, registry):
        with pytest.raises(RecordNotFoundError):
            registry.transition("missing", OrphanStatus.ERROR)


class TestResolve:
    """Approving candidates hands them to the deletion queue."""

    def test_resolve_deletes_and_removes_records(self, registry, deletion_queue, fake_store):
        fake_store.add("img/a", kind="image")
        fake_store.add("doc/b", kind="raw", access_mode="private")
        registry.upsert_candidates(
            [make_record("img/a"), make_record("doc/b", kind=ResourceKind.RAW, access_mode="private")]
        )

        result = registry.resolve(["img/a", "doc/b", "unknown"], deletion_queue)

        assert sorted(result.queued) == ["doc/b", "img/a"]
        assert result.not_found == ["unknown"]
        assert deletion_queue.join(timeout=5)
        assert sorted(fake_store.destroyed_ids) == ["doc/b", "img/a"]
        assert ("doc/b", ResourceKind.RAW, "private") in fake_store.destroyed
        assert registry.count() == 0

    def test_failed_deletion_moves_to_error(self, registry, deletion_queue, fake_store):
        fake_store.fail_ids.add("img/a")
        registry.upsert_candidates([make_record("img/a")])

        registry.resolve(["img/a"], deletion_queue)

        assert deletion_queue.join(timeout=5)
        record = registry.get("img/a")
        assert record.status is OrphanStatus.ERROR
        assert "destroy rejected" in record.last_error

    def test_only_pending_records_are_queued(self, registry, deletion_queue, fake_store):
        registry.upsert_candidates([make_record("a"), make_record("b")])
        registry.transition("b", OrphanStatus.ERROR, error="x")

        result = registry.resolve(["a", "b"], deletion_queue)

        assert result.queued == ["a"]
        assert result.skipped == ["b"]
        assert deletion_queue.join(timeout=5)
        assert fake_store.destroyed_ids == ["a"]
