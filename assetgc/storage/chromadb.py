"""
ChromaDB Client Management

Initialization and collection management for ChromaDB.

Collections here are addressed by record id and metadata filters only; every
record carries the same one-dimensional placeholder embedding so that no
embedding model is ever loaded.
"""

import os
from typing import Any, Optional

import chromadb
from chromadb.config import Settings

from assetgc.configs.paths import get_db_path

PLACEHOLDER_EMBEDDING = [1.0]


def get_chroma_client(persist_dir: Optional[str] = None) -> chromadb.PersistentClient:
    """
    Initialize persistent ChromaDB client.

    Args:
        persist_dir: Directory for persistence (defaults to the configured db path)

    Returns:
        ChromaDB PersistentClient instance
    """
    path = os.path.expanduser(persist_dir or get_db_path())
    os.makedirs(path, exist_ok=True)
    return chromadb.PersistentClient(
        path=path,
        settings=Settings(anonymized_telemetry=False),
    )


def get_or_create_collection(
    client: chromadb.ClientAPI,
    name: str,
) -> chromadb.Collection:
    """
    Get or create a key-value style collection.

    Args:
        client: ChromaDB client
        name: Collection name

    Returns:
        ChromaDB Collection
    """
    return client.get_or_create_collection(
        name=name,
        metadata={"hnsw:space": "cosine"},
        embedding_function=None,
    )


def placeholder_embeddings(count: int) -> list[list[float]]:
    """Embeddings for `count` records."""
    return [list(PLACEHOLDER_EMBEDDING) for _ in range(count)]


def build_where(conditions: list[dict[str, Any]]) -> Optional[dict[str, Any]]:
    """Combine equality/comparison conditions into a ChromaDB where filter."""
    if not conditions:
        return None
    if len(conditions) == 1:
        return conditions[0]
    return {"$and": conditions}


def clean_metadata(metadata: dict[str, Any]) -> dict[str, Any]:
    """Drop values ChromaDB cannot store (None, nested containers)."""
    return {
        key: value
        for key, value in metadata.items()
        if isinstance(value, (str, int, float, bool))
    }

