"""
Orphan Registry

Persistence for orphan candidates found by the sweep, and the review
workflow state machine:

    pending_review -> deletion_queued -> (removed once the store deletion succeeds)
    pending_review -> error
    deletion_queued -> error

Records are written with set-on-insert semantics: rediscovering a tracked id
never changes its discovery time, status or any other field.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Iterable, Optional

import chromadb

from assetgc.configs import get_logger
from assetgc.exceptions import InvalidTransitionError, RecordNotFoundError, RegistryError
from assetgc.models import (
    STATUS_TRANSITIONS,
    OrphanCandidateRecord,
    OrphanStatus,
    ResourceKind,
    utc_now,
)
from assetgc.storage.chromadb import (
    build_where,
    clean_metadata,
    get_or_create_collection,
    placeholder_embeddings,
)

if TYPE_CHECKING:
    from assetgc.cleanup.queue import DeletionQueue

logger = get_logger("storage.registry")

REGISTRY_COLLECTION = "orphaned_assets"

# ChromaDB get() calls are chunked to keep request sizes bounded
ID_CHUNK_SIZE = 500


@dataclass
class UpsertResult:
    """Outcome of a set-on-insert bulk write."""

    inserted: int = 0
    matched: int = 0


@dataclass
class ResolveResult:
    """Outcome of moving candidates into the deletion queue."""

    queued: list[str]
    skipped: list[str]
    not_found: list[str]


def record_to_metadata(record: OrphanCandidateRecord) -> dict[str, Any]:
    """Flatten a record into ChromaDB metadata."""
    metadata = record.to_dict()
    metadata.pop("id")
    metadata["discovered_at_ts"] = _timestamp(record.discovered_at)
    return clean_metadata(metadata)


def metadata_to_record(public_id: str, metadata: dict[str, Any]) -> OrphanCandidateRecord:
    """Rebuild a record from ChromaDB metadata."""
    return OrphanCandidateRecord(
        id=public_id,
        kind=ResourceKind.parse(metadata.get("kind")) or ResourceKind.AUTO,
        classification=metadata.get("classification", "unknown"),
        folder=metadata.get("folder", ""),
        byte_size=int(metadata.get("byte_size", 0) or 0),
        format=metadata.get("format", ""),
        created_at_store=metadata.get("created_at_store"),
        access_mode=metadata.get("access_mode", "upload"),
        discovered_at=metadata.get("discovered_at", ""),
        status=OrphanStatus(metadata.get("status", OrphanStatus.PENDING_REVIEW.value)),
        status_updated_at=metadata.get("status_updated_at"),
        last_error=metadata.get("last_error"),
    )


def _timestamp(iso_value: Optional[str]) -> float:
    if not iso_value:
        return 0.0
    try:
        return datetime.fromisoformat(iso_value).timestamp()
    except ValueError:
        return 0.0


class OrphanRegistry:
    """Keyed store of orphan candidates backed by a ChromaDB collection."""

    def __init__(self, collection: chromadb.Collection):
        self.collection = collection

    @classmethod
    def from_client(cls, client: chromadb.ClientAPI, name: str = REGISTRY_COLLECTION) -> "OrphanRegistry":
        return cls(get_or_create_collection(client, name))

    # --- Sweep writes ---

    def upsert_candidates(self, records: Iterable[OrphanCandidateRecord]) -> UpsertResult:
        """
        Insert records whose id is not tracked yet; leave existing ones untouched.

        Duplicate ids within the batch are collapsed (first occurrence wins).

        Args:
            records: Candidates from a sweep

        Returns:
            UpsertResult with inserted and matched counts
        """
        unique: dict[str, OrphanCandidateRecord] = {}
        for record in records:
            unique.setdefault(record.id, record)

        result = UpsertResult()
        ids = list(unique)
        for start in range(0, len(ids), ID_CHUNK_SIZE):
            chunk = ids[start:start + ID_CHUNK_SIZE]
            try:
                existing = set(self.collection.get(ids=chunk, include=[])["ids"])
                new_ids = [public_id for public_id in chunk if public_id not in existing]
                if new_ids:
                    # A concurrent writer that got there first turns this add into a no-op
                    self.collection.add(
                        ids=new_ids,
                        documents=new_ids,
                        metadatas=[record_to_metadata(unique[public_id]) for public_id in new_ids],
                        embeddings=placeholder_embeddings(len(new_ids)),
                    )
            except Exception as e:
                raise RegistryError("Failed to upsert orphan candidates", {"error": str(e)}) from e

            result.inserted += len(new_ids)
            result.matched += len(chunk) - len(new_ids)

        logger.info(f"Registry upsert: {result.inserted} inserted, {result.matched} already tracked")
        return result

    # --- Queries ---

    def get(self, public_id: str) -> Optional[OrphanCandidateRecord]:
        """Load one record, or None if the id is not tracked."""
        result = self.collection.get(ids=[public_id], include=["metadatas"])
        if not result["ids"]:
            return None
        return metadata_to_record(result["ids"][0], result["metadatas"][0])

    def list_candidates(
        self,
        status: Optional[OrphanStatus] = None,
        limit: int = 100,
        offset: int = 0,
        discovered_before: Optional[datetime] = None,
    ) -> list[OrphanCandidateRecord]:
        """
        List records, oldest discovery first.

        Args:
            status: Only records in this status
            limit: Maximum number of records
            offset: Records to skip
            discovered_before: Only records discovered before this time

        Returns:
            List of OrphanCandidateRecord
        """
        conditions: list[dict[str, Any]] = []
        if status is not None:
            conditions.append({"status": OrphanStatus(status).value})
        if discovered_before is not None:
            conditions.append({"discovered_at_ts": {"$lt": discovered_before.timestamp()}})

        result = self.collection.get(where=build_where(conditions), include=["metadatas"])
        rows = sorted(
            zip(result["ids"], result["metadatas"]),
            key=lambda row: (row[1].get("discovered_at_ts", 0.0), row[0]),
        )
        return [metadata_to_record(public_id, meta) for public_id, meta in rows[offset:offset + limit]]

    def count(self, status: Optional[OrphanStatus] = None) -> int:
        """Number of records, optionally in one status."""
        if status is None:
            return self.collection.count()
        result = self.collection.get(where={"status": OrphanStatus(status).value}, include=[])
        return len(result["ids"])

    def status_counts(self) -> dict[str, int]:
        """Record count per status."""
        return {status.value: self.count(status) for status in OrphanStatus}

    # --- Review workflow ---

    def transition(
        self,
        public_id: str,
        new_status: OrphanStatus,
        error: Optional[str] = None,
    ) -> OrphanCandidateRecord:
        """
        Move a record to a new status.

        Args:
            public_id: Record id
            new_status: Target status
            error: Failure description (stored when moving to error)

        Returns:
            The updated record

        Raises:
            RecordNotFoundError: The id is not tracked
            InvalidTransitionError: The workflow does not allow the change
        """
        new_status = OrphanStatus(new_status)
        record = self.get(public_id)
        if record is None:
            raise RecordNotFoundError(f"Orphan candidate not found: {public_id}")

        if new_status not in STATUS_TRANSITIONS[record.status]:
            raise InvalidTransitionError(public_id, record.status.value, new_status.value)

        record.status = new_status
        record.status_updated_at = utc_now().isoformat()
        if error is not None:
            record.last_error = error[:500]

        self.collection.update(ids=[public_id], metadatas=[record_to_metadata(record)])
        logger.info(f"Orphan {public_id}: status -> {new_status.value}")
        return record

    def remove(self, public_id: str) -> None:
        """Drop a record once its asset is gone from the store."""
        self.collection.delete(ids=[public_id])
        logger.debug(f"Removed resolved orphan record: {public_id}")

    def resolve(self, public_ids: Iterable[str], queue: "DeletionQueue") -> ResolveResult:
        """
        Approve pending candidates for deletion.

        Each pending record moves to deletion_queued and is submitted to the
        deletion queue grouped by kind and access mode. A successful deletion
        removes the record; a failed one moves it to error.

        Args:
            public_ids: Ids to approve
            queue: Deletion queue

        Returns:
            ResolveResult listing queued, skipped (not pending) and unknown ids
        """
        result = ResolveResult(queued=[], skipped=[], not_found=[])
        groups: dict[tuple[ResourceKind, str], list[str]] = {}

        for public_id in dict.fromkeys(public_ids):
            record = self.get(public_id)
            if record is None:
                result.not_found.append(public_id)
                continue
            if record.status is not OrphanStatus.PENDING_REVIEW:
                result.skipped.append(public_id)
                continue
            self.transition(public_id, OrphanStatus.DELETION_QUEUED)
            groups.setdefault((record.kind, record.access_mode), []).append(public_id)
            result.queued.append(public_id)

        for (kind, access_mode), ids in groups.items():
            submitted = queue.submit(
                ids,
                kind,
                access_mode=access_mode,
                on_success=self._on_deleted,
                on_failure=self._on_delete_failed,
            )
            if not submitted:
                for public_id in ids:
                    self._on_delete_failed(public_id, "deletion queue is full")

        return result

    def _on_deleted(self, public_id: str) -> None:
        self.remove(public_id)

    def _on_delete_failed(self, public_id: str, error: str) -> None:
        try:
            self.transition(public_id, OrphanStatus.ERROR, error=error)
        except RegistryError as e:
            logger.warning(f"Could not record deletion failure for {public_id}: {e}")
