"""
Shared Services

Thread-safe lazy-initialized services shared by the sweep CLI, the review API
and the reconciler hooks. Uses singleton pattern with double-checked locking
for thread safety.
"""

from threading import RLock
from typing import TYPE_CHECKING, Optional

import chromadb

from assetgc.configs.runtime import get_full_config
from assetgc.storage import DocumentStore, OrphanRegistry, get_chroma_client

# Use TYPE_CHECKING to avoid circular imports at runtime
if TYPE_CHECKING:
    from assetgc.blobstore import BlobStore
    from assetgc.cleanup.queue import DeletionQueue


class ServiceManager:
    """
    Thread-safe singleton manager for all shared services.

    Provides lazy initialization of the ChromaDB client, document store,
    orphan registry, blob store client and deletion queue, ensuring each
    is created only once even under concurrent access.
    """

    _instance: Optional["ServiceManager"] = None
    _lock = RLock()

    def __new__(cls) -> "ServiceManager":
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self) -> None:
        if self._initialized:
            return

        self._client: Optional[chromadb.ClientAPI] = None
        self._documents: Optional[DocumentStore] = None
        self._registry: Optional[OrphanRegistry] = None
        self._blob_store: Optional["BlobStore"] = None
        self._deletion_queue: Optional["DeletionQueue"] = None
        self._resource_lock = RLock()
        self._initialized = True

    @property
    def chromadb_client(self) -> chromadb.ClientAPI:
        """Get the ChromaDB client directly."""
        if self._client is None:
            with self._resource_lock:
                if self._client is None:
                    self._client = get_chroma_client()
        return self._client

    @property
    def documents(self) -> DocumentStore:
        """Get or create the application document store."""
        if self._documents is None:
            with self._resource_lock:
                if self._documents is None:
                    self._documents = DocumentStore(self.chromadb_client)
        return self._documents

    @property
    def registry(self) -> OrphanRegistry:
        """Get or create the orphan registry."""
        if self._registry is None:
            with self._resource_lock:
                if self._registry is None:
                    self._registry = OrphanRegistry.from_client(self.chromadb_client)
        return self._registry

    @property
    def blob_store(self) -> "BlobStore":
        """
        Get or create the blob store client.

        Raises:
            MissingConfigError: Credentials are not configured
        """
        if self._blob_store is None:
            with self._resource_lock:
                if self._blob_store is None:
                    from assetgc.blobstore import get_blob_store

                    self._blob_store = get_blob_store(get_full_config())
        return self._blob_store

    @property
    def deletion_queue(self) -> "DeletionQueue":
        """Get or create the deletion queue (worker starts on first submit)."""
        if self._deletion_queue is None:
            with self._resource_lock:
                if self._deletion_queue is None:
                    from assetgc.cleanup.queue import DeletionQueue

                    maxsize = get_full_config()["deletion_queue"]["maxsize"]
                    self._deletion_queue = DeletionQueue(self.blob_store, maxsize=maxsize)
        return self._deletion_queue

    def reset(self) -> None:
        """Reset all services (for testing)."""
        with self._resource_lock:
            if self._deletion_queue is not None:
                self._deletion_queue.stop()
            self._client = None
            self._documents = None
            self._registry = None
            self._blob_store = None
            self._deletion_queue = None

    def set_client(self, client: chromadb.ClientAPI) -> None:
        """Set the ChromaDB client directly (for testing)."""
        with self._resource_lock:
            self._client = client
            self._documents = None
            self._registry = None

    def set_blob_store(self, store: "BlobStore") -> None:
        """Set the blob store directly (for testing)."""
        with self._resource_lock:
            if self._deletion_queue is not None:
                self._deletion_queue.stop()
            self._blob_store = store
            self._deletion_queue = None


# Module-level singleton instance
_services = ServiceManager()


# --- Public API ---


def get_document_store() -> DocumentStore:
    """Get the application document store."""
    return _services.documents


def get_registry() -> OrphanRegistry:
    """Get the orphan registry."""
    return _services.registry


def get_blob_store() -> "BlobStore":
    """Get the blob store client."""
    return _services.blob_store


def get_deletion_queue() -> "DeletionQueue":
    """Get the shared deletion queue."""
    return _services.deletion_queue


def stop_deletion_queue() -> None:
    """Stop the shared deletion queue worker if one was created."""
    queue = _services._deletion_queue
    if queue is not None:
        queue.stop()


def reset_services() -> None:
    """Reset all lazy-initialized services (for testing)."""
    _services.reset()


def set_chromadb_client(client: chromadb.ClientAPI) -> None:
    """Set the ChromaDB client directly (for testing)."""
    _services.set_client(client)


def set_blob_store(store: "BlobStore") -> None:
    """Set the blob store directly (for testing)."""
    _services.set_blob_store(store)
