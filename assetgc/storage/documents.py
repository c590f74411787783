"""
Application Document Store

Schemaless application documents (users, coaches, programs, lessons, ...)
kept one ChromaDB collection per schema. Each record stores the document as
JSON plus a small metadata projection:
- schema: schema name
- has_refs: whether any of the schema's existence paths is populated
- owner link fields declared by the schema extractor (user, coach, senderId, ...)

The sweep reads collections in limit/offset batches filtered on has_refs, so
documents that cannot hold a reference are never loaded.
"""

import json
import uuid
from typing import Any, Iterator, Optional

import chromadb

from assetgc.configs import get_logger
from assetgc.exceptions import DocumentStoreError
from assetgc.extract import get_extractor
from assetgc.storage.chromadb import (
    build_where,
    clean_metadata,
    get_or_create_collection,
    placeholder_embeddings,
)

logger = get_logger("storage.documents")

COLLECTION_PREFIX = "assetgc_"


class DocumentStore:
    """Per-schema document collections with cursor-paginated reads."""

    def __init__(self, client: chromadb.ClientAPI, prefix: str = COLLECTION_PREFIX):
        self._client = client
        self._prefix = prefix
        self._collections: dict[str, chromadb.Collection] = {}

    def collection(self, schema: str) -> chromadb.Collection:
        """Get or create the collection for a schema."""
        if schema not in self._collections:
            self._collections[schema] = get_or_create_collection(self._client, f"{self._prefix}{schema}")
        return self._collections[schema]

    # --- Writes ---

    def put(self, schema: str, doc: dict[str, Any]) -> str:
        """
        Insert or replace a document.

        Args:
            schema: Schema name
            doc: Document; an `_id` is generated when missing

        Returns:
            The document id
        """
        return self.put_many(schema, [doc])[0]

    def put_many(self, schema: str, docs: list[dict[str, Any]]) -> list[str]:
        """Insert or replace several documents of one schema."""
        if not docs:
            return []

        ids, documents, metadatas = [], [], []
        for doc in docs:
            if not isinstance(doc, dict):
                raise DocumentStoreError(f"Cannot store non-object {schema} document")
            doc_id = str(doc.get("_id") or uuid.uuid4().hex)
            stored = {**doc, "_id": doc_id}
            ids.append(doc_id)
            documents.append(json.dumps(stored, default=str))
            metadatas.append(self._metadata_for(schema, stored))

        self.collection(schema).upsert(
            ids=ids,
            documents=documents,
            metadatas=metadatas,
            embeddings=placeholder_embeddings(len(ids)),
        )
        return ids

    def delete(self, schema: str, doc_id: str) -> None:
        """Delete one document."""
        self.collection(schema).delete(ids=[doc_id])

    def _metadata_for(self, schema: str, doc: dict[str, Any]) -> dict[str, Any]:
        metadata: dict[str, Any] = {"schema": schema, "has_refs": False}
        extractor = get_extractor(schema)
        if extractor is not None:
            metadata["has_refs"] = extractor.holds_references(doc)
            for field in extractor.index_fields:
                value = doc.get(field)
                if value is not None:
                    metadata[field] = str(value)
        return clean_metadata(metadata)

    # --- Reads ---

    def get(self, schema: str, doc_id: str) -> Optional[dict[str, Any]]:
        """Load one document by id, or None."""
        result = self.collection(schema).get(ids=[doc_id], include=["documents"])
        if not result["ids"]:
            return None
        return self._decode(schema, result["ids"][0], result["documents"][0])

    def find(self, schema: str, **filters: Any) -> list[dict[str, Any]]:
        """
        Load every document whose indexed fields equal the given values.

        Only fields listed in the schema extractor's index_fields are filterable.
        """
        return [doc for batch in self.iter_batches(schema, only_with_refs=False, **filters) for doc in batch]

    def count(self, schema: str, only_with_refs: bool = False, batch_size: int = 5000) -> int:
        """Number of documents in a schema collection."""
        if not only_with_refs:
            return self.collection(schema).count()

        total = 0
        for page in self._pages(schema, self._where(True, {}), batch_size, include=[]):
            total += len(page["ids"])
        return total

    def iter_batches(
        self,
        schema: str,
        batch_size: int = 500,
        only_with_refs: bool = True,
        **filters: Any,
    ) -> Iterator[list[dict[str, Any]]]:
        """
        Yield matching documents one bounded batch at a time.

        Each batch is a single limit/offset query against the collection, so
        no step holds more than batch_size documents. Batches follow the
        collection's storage order, which is stable while it is not written to.

        Args:
            schema: Schema name
            batch_size: Documents per batch
            only_with_refs: Skip documents with no populated asset field
            **filters: Equality filters on indexed fields

        Yields:
            Lists of at most batch_size documents
        """
        where = self._where(only_with_refs, filters)
        for page in self._pages(schema, where, batch_size, include=["documents"]):
            docs = [
                doc
                for doc in (self._decode(schema, doc_id, raw) for doc_id, raw in zip(page["ids"], page["documents"]))
                if doc is not None
            ]
            if docs:
                yield docs

    @staticmethod
    def _where(only_with_refs: bool, filters: dict[str, Any]) -> Optional[dict[str, Any]]:
        conditions: list[dict[str, Any]] = []
        if only_with_refs:
            conditions.append({"has_refs": True})
        for field, value in filters.items():
            conditions.append({field: str(value)})
        return build_where(conditions)

    def _pages(
        self,
        schema: str,
        where: Optional[dict[str, Any]],
        batch_size: int,
        include: list[str],
    ) -> Iterator[dict[str, Any]]:
        if batch_size < 1:
            raise DocumentStoreError("batch_size must be positive", {"batch_size": batch_size})

        collection = self.collection(schema)
        offset = 0
        while True:
            try:
                page = collection.get(where=where, limit=batch_size, offset=offset, include=include)
            except Exception as e:
                raise DocumentStoreError(f"Failed to query {schema} documents", {"error": str(e)}) from e
            if not page["ids"]:
                break
            yield page
            if len(page["ids"]) < batch_size:
                break
            offset += batch_size

    def _decode(self, schema: str, doc_id: str, raw: Optional[str]) -> Optional[dict[str, Any]]:
        try:
            doc = json.loads(raw) if raw else None
        except json.JSONDecodeError as e:
            logger.warning(f"Skipping unreadable {schema} document {doc_id}: {e}")
            return None
        if not isinstance(doc, dict):
            logger.warning(f"Skipping non-object {schema} document {doc_id}")
            return None
        doc.setdefault("_id", doc_id)
        return doc
