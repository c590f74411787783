"""
Tests for the orphan review HTTP API.
"""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from assetgc.models import OrphanCandidateRecord, OrphanStatus, ResourceKind


@pytest.fixture
def api_client(temp_chroma_client, fake_store):
    """Create a test client wired to the temporary ChromaDB and fake store."""
    from assetgc.configs.services import reset_services, set_blob_store, set_chromadb_client

    # Reset the ServiceManager singleton before wiring test services
    reset_services()
    set_chromadb_client(temp_chroma_client)
    set_blob_store(fake_store)

    from assetgc.http import app

    yield TestClient(app)

    # Reset after test
    reset_services()


@pytest.fixture
def seeded_registry(api_client):
    from assetgc.configs.services import get_registry

    registry = get_registry()
    registry.upsert_candidates(
        [
            OrphanCandidateRecord(id="folder/img-a", kind=ResourceKind.IMAGE, discovered_at="2024-01-01T00:00:00+00:00"),
            OrphanCandidateRecord(id="folder/img-b", kind=ResourceKind.IMAGE, discovered_at="2024-01-02T00:00:00+00:00"),
            OrphanCandidateRecord(id="doc-c", kind=ResourceKind.RAW, discovered_at="2024-01-03T00:00:00+00:00"),
        ]
    )
    return registry


class TestHealth:
    def test_health(self, api_client):
        response = api_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestListOrphans:
    """Tests for GET /orphans and /orphans/stats."""

    def test_list(self, api_client, seeded_registry):
        response = api_client.get("/orphans")

        assert response.status_code == 200
        data = response.json()
        assert [o["id"] for o in data["orphans"]] == ["folder/img-a", "folder/img-b", "doc-c"]
        assert data["total"] == 3

    def test_list_with_paging_and_status(self, api_client, seeded_registry):
        seeded_registry.transition("doc-c", OrphanStatus.ERROR, error="x")

        response = api_client.get("/orphans", params={"status": "pending_review", "limit": 1, "offset": 1})

        data = response.json()
        assert [o["id"] for o in data["orphans"]] == ["folder/img-b"]
        assert data["total"] == 2

    def test_invalid_status(self, api_client):
        assert api_client.get("/orphans", params={"status": "deleted"}).status_code == 422

    def test_stats(self, api_client, seeded_registry):
        data = api_client.get("/orphans/stats").json()

        assert data["by_status"]["pending_review"] == 3
        assert data["total"] == 3


class TestGetOrphan:
    """Tests for GET /orphans/{id}."""

    def test_id_with_slashes(self, api_client, seeded_registry):
        response = api_client.get("/orphans/folder/img-a")

        assert response.status_code == 200
        assert response.json()["kind"] == "image"

    def test_not_found(self, api_client):
        assert api_client.get("/orphans/nope").status_code == 404


class TestReviewActions:
    """Tests for resolve and error flagging."""

    def test_resolve_deletes_from_store(self, api_client, seeded_registry, fake_store):
        from assetgc.configs.services import get_deletion_queue

        fake_store.add("folder/img-a")

        response = api_client.post("/orphans/resolve", json={"ids": ["folder/img-a", "missing"]})

        assert response.status_code == 200
        assert response.json() == {"queued": ["folder/img-a"], "skipped": [], "not_found": ["missing"]}
        assert get_deletion_queue().join(timeout=5)
        assert fake_store.destroyed_ids == ["folder/img-a"]
        assert seeded_registry.get("folder/img-a") is None

    def test_stop_deletion_queue(self, api_client, seeded_registry, fake_store):
        from assetgc.configs.services import get_deletion_queue, stop_deletion_queue

        fake_store.add("doc-c", kind="raw")
        api_client.post("/orphans/resolve", json={"ids": ["doc-c"]})
        queue = get_deletion_queue()
        assert queue.join(timeout=5)

        stop_deletion_queue()

        assert not queue.running

    def test_flag_error(self, api_client, seeded_registry):
        response = api_client.post("/orphans/folder/img-b/error", json={"error": "still in use"})

        assert response.status_code == 200
        assert response.json()["status"] == "error"
        assert seeded_registry.get("folder/img-b").last_error == "still in use"

    def test_flag_error_twice_conflicts(self, api_client, seeded_registry):
        api_client.post("/orphans/doc-c/error", json={"error": "a"})

        assert api_client.post("/orphans/doc-c/error", json={"error": "b"}).status_code == 409

    def test_flag_error_missing(self, api_client):
        assert api_client.post("/orphans/nope/error", json={"error": "x"}).status_code == 404


class TestSweepEndpoint:
    """Tests for POST /sweep."""

    def test_dry_run_by_default(self, api_client, fake_store):
        fake_store.add("orphan-1")

        response = api_client.post("/sweep", json={})

        assert response.status_code == 200
        data = response.json()
        assert data["dry_run"] is True
        assert data["candidates"] == 1
        assert "orphan-1" in data["report"]

    def test_persisting_sweep(self, api_client, fake_store):
        from assetgc.configs.services import get_registry

        fake_store.add("orphan-1")

        data = api_client.post("/sweep", json={"dry_run": False}).json()

        assert data["inserted"] == 1
        assert get_registry().get("orphan-1") is not None

    def test_listing_failure(self, api_client, fake_store):
        fake_store.fail_scopes.add(("image", "upload"))

        assert api_client.post("/sweep", json={"dry_run": False}).status_code == 502

    def test_missing_configuration(self, api_client):
        from assetgc.exceptions import MissingConfigError

        with patch("assetgc.http.orphans.get_blob_store", side_effect=MissingConfigError("no creds", ["X"])):
            assert api_client.post("/sweep", json={}).status_code == 503
