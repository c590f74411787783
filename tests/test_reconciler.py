"""
Tests for the differential reconciler (mutation-time cleanup).
"""

from unittest.mock import MagicMock

import pytest

from assetgc.cleanup import AssetReconciler, diff_assets, group_by_kind
from assetgc.extract import extract_all
from assetgc.models import ResourceKind, StorageReference


def refs(*pairs):
    return {public_id: StorageReference(id=public_id, kind=kind) for public_id, kind in pairs}


def lesson_with_files(*public_ids):
    return {"_id": "lesson-1", "content": {"files": [{"publicId": i, "resourceType": "image"} for i in public_ids]}}


@pytest.fixture
def mock_queue():
    queue = MagicMock()
    queue.submit.return_value = True
    return queue


class TestDiffAssets:
    """Pure diff properties."""

    def test_removed_reference_is_released(self):
        initial = refs(("a", ResourceKind.IMAGE), ("b", ResourceKind.IMAGE), ("c", ResourceKind.IMAGE))
        final = refs(("a", ResourceKind.IMAGE), ("c", ResourceKind.IMAGE))

        assert set(diff_assets(initial, final)) == {"b"}

    def test_pure_addition_releases_nothing(self):
        initial = refs(("a", ResourceKind.IMAGE))
        final = refs(("a", ResourceKind.IMAGE), ("new", ResourceKind.VIDEO))

        assert diff_assets(initial, final) == {}

    def test_explicit_removal_only_if_initially_held(self):
        initial = refs(("a", ResourceKind.RAW), ("b", ResourceKind.RAW))
        final = refs(("a", ResourceKind.RAW), ("b", ResourceKind.RAW))

        released = diff_assets(initial, final, removed_ids=["b", "foreign"])

        assert set(released) == {"b"}

    def test_kind_follows_initial_tagging(self):
        initial = refs(("a", ResourceKind.VIDEO))

        assert diff_assets(initial, {})["a"].kind is ResourceKind.VIDEO

    def test_group_by_kind(self):
        grouped = group_by_kind(
            refs(("v2", ResourceKind.VIDEO), ("i1", ResourceKind.IMAGE), ("v1", ResourceKind.VIDEO))
        )

        assert grouped == {ResourceKind.VIDEO: ["v1", "v2"], ResourceKind.IMAGE: ["i1"]}


class TestTrackedMutation:
    """The context manager only queues after a clean exit."""

    def test_released_assets_are_queued(self, mock_queue):
        reconciler = AssetReconciler(mock_queue)

        with reconciler.track("lesson", lesson_with_files("a", "b", "c")) as tracker:
            tracker.finalize(lesson_with_files("a", "c"))

        mock_queue.submit.assert_called_once_with(["b"], ResourceKind.IMAGE)

    def test_aborted_transaction_queues_nothing(self, mock_queue):
        reconciler = AssetReconciler(mock_queue)

        with pytest.raises(RuntimeError):
            with reconciler.track("lesson", lesson_with_files("a", "b")) as tracker:
                raise RuntimeError("transaction aborted")

        mock_queue.submit.assert_not_called()

    def test_missing_finalize_queues_nothing(self, mock_queue):
        reconciler = AssetReconciler(mock_queue)

        with reconciler.track("lesson", lesson_with_files("a")):
            pass

        mock_queue.submit.assert_not_called()

    def test_entity_deletion_releases_everything(self, mock_queue):
        reconciler = AssetReconciler(mock_queue)
        coach = {
            "profilePicture": {"publicId": "profile_pictures/c1"},
            "videoIntroduction": {"publicId": "coaches/c1/intro"},
        }

        with reconciler.track("coach", coach) as tracker:
            tracker.mark_deleted()

        submitted = {call.args[1]: call.args[0] for call in mock_queue.submit.call_args_list}
        assert submitted == {
            ResourceKind.IMAGE: ["profile_pictures/c1"],
            ResourceKind.VIDEO: ["coaches/c1/intro"],
        }

    def test_submission_error_is_swallowed(self, mock_queue):
        mock_queue.submit.side_effect = RuntimeError("queue exploded")
        reconciler = AssetReconciler(mock_queue)

        with reconciler.track("lesson", lesson_with_files("a")) as tracker:
            tracker.finalize(lesson_with_files())

    def test_unreadable_payload_queues_nothing(self, mock_queue):
        reconciler = AssetReconciler(mock_queue)

        with reconciler.track("lesson", lesson_with_files("a")) as tracker:
            tracker.finalize(["not", "a", "lesson"])

        mock_queue.submit.assert_not_called()


class TestReconcile:
    """Tests for the convenience entry point."""

    def test_imga_imgb_program_update(self, deletion_queue, fake_store):
        """Replacing imgA with imgB deletes imgA and keeps imgB."""
        fake_store.add("programs/p1/imgA")
        fake_store.add("programs/p1/imgB")
        before = {"_id": "p1", "programImages": [{"publicId": "programs/p1/imgA"}]}
        after = {"_id": "p1", "programImages": [{"publicId": "programs/p1/imgB"}]}

        result = AssetReconciler(deletion_queue).reconcile("program", before, after)

        assert result.queued == {"image": ["programs/p1/imgA"]}
        assert deletion_queue.join(timeout=5)
        assert fake_store.destroyed_ids == ["programs/p1/imgA"]

    def test_counts_and_error(self, mock_queue):
        mock_queue.submit.side_effect = RuntimeError("boom")

        result = AssetReconciler(mock_queue).reconcile(
            "lesson", lesson_with_files("a", "b"), lesson_with_files("a")
        )

        assert result.initial_count == 2
        assert result.final_count == 1
        assert result.queued == {}
        assert "boom" in result.error

    def test_dropped_submission_is_not_reported_as_queued(self, mock_queue):
        mock_queue.submit.return_value = False

        result = AssetReconciler(mock_queue).reconcile("lesson", lesson_with_files("a"), None)

        assert result.queued == {}
        assert result.error is None

    def test_nested_program_lessons(self, mock_queue):
        lesson = lesson_with_files("lesson-file")
        before = {"modules": [{"lessons": [lesson]}], "trailerVideo": {"publicId": "trailer"}}
        after = {"modules": [{"lessons": []}], "trailerVideo": {"publicId": "trailer"}}

        result = AssetReconciler(mock_queue).reconcile("program", before, after)

        assert result.queued == {"image": ["lesson-file"]}
        assert "trailer" in extract_all("program", after)
