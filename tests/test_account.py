"""
Tests for account purge (assets owned by a deleted account).
"""

from unittest.mock import MagicMock

from assetgc.cleanup import collect_account_assets, purge_account_assets
from assetgc.models import ResourceKind


def seed_coach_account(documents):
    documents.put(
        "user",
        {
            "_id": "u1",
            "profilePicture": {"publicId": "profile_pictures/u1"},
            "backgrounds": [{"publicId": "users/u1/backgrounds/b1"}],
        },
    )
    documents.put(
        "coach",
        {
            "_id": "c1",
            "user": "u1",
            "videoIntroduction": {"publicId": "coaches/c1/intro"},
            "settings": {
                "insuranceRecognition": {
                    "registries": [{"verificationDocument": {"publicId": "coaches/c1/verification/v1"}}]
                }
            },
        },
    )
    documents.put(
        "program",
        {
            "_id": "p1",
            "coach": "u1",
            "programImages": [{"publicId": "coaches/c1/programs/p1/cover"}],
            "trailerVideo": {"publicId": "coaches/c1/programs/p1/trailer"},
        },
    )
    documents.put(
        "lesson",
        {"_id": "l1", "program": "p1", "content": {"files": [{"publicId": "lf1", "resourceType": "raw"}]}},
    )
    # Another coach's lesson must not be collected
    documents.put(
        "lesson",
        {"_id": "l2", "program": "p2", "content": {"files": [{"publicId": "other", "resourceType": "raw"}]}},
    )
    documents.put_many(
        "message",
        [{"_id": f"m{i}", "senderId": "u1", "attachment": {"publicId": f"user_messages/a{i}"}} for i in range(3)]
        + [{"_id": "m9", "senderId": "u2", "attachment": {"publicId": "user_messages/foreign"}}],
    )


class TestCollectAccountAssets:
    """Tests for collect_account_assets."""

    def test_collects_everything_the_account_owns(self, document_store):
        seed_coach_account(document_store)

        groups = collect_account_assets(document_store, "u1")

        assert groups[ResourceKind.IMAGE] == {
            "profile_pictures/u1",
            "users/u1/backgrounds/b1",
            "coaches/c1/programs/p1/cover",
        }
        assert groups[ResourceKind.VIDEO] == {"coaches/c1/intro", "coaches/c1/programs/p1/trailer"}
        assert groups[ResourceKind.RAW] == {"coaches/c1/verification/v1", "lf1"}
        assert groups[ResourceKind.AUTO] == {"user_messages/a0", "user_messages/a1", "user_messages/a2"}

    def test_plain_user(self, document_store):
        document_store.put("user", {"_id": "u5", "profilePicture": {"publicId": "profile_pictures/u5"}})

        assert collect_account_assets(document_store, "u5") == {ResourceKind.IMAGE: {"profile_pictures/u5"}}

    def test_missing_user(self, document_store):
        assert collect_account_assets(document_store, "ghost") == {}

    def test_programs_found_without_coach_profile(self, document_store):
        document_store.put("user", {"_id": "u7"})
        document_store.put(
            "program",
            {"_id": "p7", "coach": "u7", "programImages": [{"publicId": "coaches/u7/programs/p7/cover"}]},
        )
        document_store.put("lesson", {"_id": "l7", "program": "p7", "content": {"files": [{"publicId": "lf7"}]}})

        groups = collect_account_assets(document_store, "u7")

        assert "coaches/u7/programs/p7/cover" in groups[ResourceKind.IMAGE]
        assert "lf7" in set().union(*groups.values())

    def test_programs_keyed_by_coach_document_id_are_not_collected(self, document_store):
        seed_coach_account(document_store)
        document_store.put("program", {"_id": "p8", "coach": "c1", "trailerVideo": {"publicId": "not-owned"}})

        groups = collect_account_assets(document_store, "u1")

        assert "not-owned" not in groups[ResourceKind.VIDEO]


class TestPurgeAccountAssets:
    """Tests for purge_account_assets."""

    def test_submits_each_kind(self, document_store):
        seed_coach_account(document_store)
        queue = MagicMock()
        queue.submit.return_value = True

        submitted = purge_account_assets(document_store, queue, "u1")

        assert submitted == {"image": 3, "video": 2, "raw": 2, "auto": 3}
        assert queue.submit.call_count == 4
        for call in queue.submit.call_args_list:
            ids = call.args[0]
            assert ids == sorted(ids)

    def test_missing_user_queues_nothing(self, document_store):
        queue = MagicMock()

        assert purge_account_assets(document_store, queue, "ghost") == {}
        queue.submit.assert_not_called()
