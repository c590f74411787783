"""
AssetGC Storage Layer

ChromaDB client management, application documents and the orphan registry.
"""

from assetgc.storage.chromadb import (
    get_chroma_client,
    get_or_create_collection,
)
from assetgc.storage.documents import DocumentStore
from assetgc.storage.registry import (
    REGISTRY_COLLECTION,
    OrphanRegistry,
    ResolveResult,
    UpsertResult,
)

__all__ = [
    # Client management
    "get_chroma_client",
    "get_or_create_collection",
    # Documents
    "DocumentStore",
    # Orphan registry
    "REGISTRY_COLLECTION",
    "OrphanRegistry",
    "ResolveResult",
    "UpsertResult",
]
