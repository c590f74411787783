"""
Pytest fixtures for AssetGC tests.
"""

import os
import sys
import tempfile
from pathlib import Path
from typing import Generator, Optional

import pytest

# Add project root to path for assetgc imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Set test environment
os.environ["ASSETGC_DATA_PATH"] = "/tmp/assetgc_test_data"
os.environ["ASSETGC_DB_PATH"] = "/tmp/assetgc_test_db"

from assetgc.blobstore import DESTROY_DELETED, DESTROY_NOT_FOUND, BlobStore, DestroyResult, ListPage  # noqa: E402
from assetgc.exceptions import StoreDeletionError, StoreListingError  # noqa: E402
from assetgc.models import ResourceKind, StoreAsset  # noqa: E402


class RecordingBlobStore(BlobStore):
    """
    In-memory blob store.

    Assets are listed per (kind, access mode) with integer cursors. Destroy
    calls are recorded and remove the asset. Scopes in fail_scopes raise on
    listing; ids in fail_ids raise on destroy.
    """

    def __init__(self) -> None:
        self.assets: dict[tuple[str, str], list[StoreAsset]] = {}
        self.destroyed: list[tuple[str, ResourceKind, Optional[str]]] = []
        self.fail_scopes: set[tuple[str, str]] = set()
        self.fail_ids: set[str] = set()
        self.list_calls = 0

    @property
    def name(self) -> str:
        return "recording"

    def add(self, public_id: str, kind: str = "image", access_mode: str = "upload", folder: str = "") -> StoreAsset:
        asset = StoreAsset(
            public_id=public_id,
            kind=ResourceKind(kind),
            access_mode=access_mode,
            folder=folder,
            byte_size=1024,
            format="jpg" if kind == "image" else "bin",
            created_at="2024-01-01T00:00:00+00:00",
        )
        self.assets.setdefault((kind, access_mode), []).append(asset)
        return asset

    def list_page(self, kind, access_mode, cursor=None, page_size=500) -> ListPage:
        self.list_calls += 1
        kind = ResourceKind(kind).value
        if (kind, access_mode) in self.fail_scopes:
            raise StoreListingError("listing unavailable", kind=kind, access_mode=access_mode)
        items = self.assets.get((kind, access_mode), [])
        start = int(cursor or 0)
        end = start + page_size
        next_cursor = str(end) if end < len(items) else None
        return ListPage(items=list(items[start:end]), next_cursor=next_cursor)

    def destroy(self, public_id, kind, access_mode=None) -> DestroyResult:
        self.destroyed.append((public_id, ResourceKind(kind), access_mode))
        if public_id in self.fail_ids:
            raise StoreDeletionError("destroy rejected", public_id=public_id)
        for scope, items in self.assets.items():
            for asset in items:
                if asset.public_id == public_id:
                    items.remove(asset)
                    return DestroyResult(public_id=public_id, outcome=DESTROY_DELETED, kind=asset.kind)
        return DestroyResult(public_id=public_id, outcome=DESTROY_NOT_FOUND)

    @property
    def destroyed_ids(self) -> list[str]:
        return [public_id for public_id, _, _ in self.destroyed]


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_chroma_client():
    """Create a temporary ChromaDB client for testing."""
    import chromadb
    from chromadb.config import Settings

    with tempfile.TemporaryDirectory() as tmpdir:
        client = chromadb.PersistentClient(
            path=tmpdir,
            settings=Settings(anonymized_telemetry=False),
        )
        yield client


@pytest.fixture
def fake_store() -> RecordingBlobStore:
    """In-memory blob store that records destroy calls."""
    return RecordingBlobStore()


@pytest.fixture
def document_store(temp_chroma_client):
    """Document store over the temporary ChromaDB client."""
    from assetgc.storage import DocumentStore

    return DocumentStore(temp_chroma_client)


@pytest.fixture
def registry(temp_chroma_client):
    """Orphan registry over the temporary ChromaDB client."""
    from assetgc.storage import OrphanRegistry

    return OrphanRegistry.from_client(temp_chroma_client)


@pytest.fixture
def deletion_queue(fake_store):
    """Deletion queue draining into the fake store; stopped after the test."""
    from assetgc.cleanup import DeletionQueue

    queue = DeletionQueue(fake_store, maxsize=10)
    yield queue
    queue.stop(timeout=2)


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo handlers installed by setup_logging during a test."""
    import logging

    logger = logging.getLogger("assetgc")
    handlers, level = list(logger.handlers), logger.level
    yield
    for handler in logger.handlers:
        if handler not in handlers:
            handler.close()
    logger.handlers[:] = handlers
    logger.setLevel(level)
