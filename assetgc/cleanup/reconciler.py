"""
Differential Reconciler

Computes which storage ids an entity stopped referencing across one mutation
and hands them to the deletion queue.

    reconciler = AssetReconciler(get_deletion_queue())
    with reconciler.track("lesson", current_lesson) as tracker:
        saved = save_lesson(payload)          # caller's own transaction
        tracker.finalize(saved, removed_ids=payload.get("removedFiles", []))

The diff only runs after the with-block exits cleanly. An exception inside
the block (an aborted transaction) propagates and queues nothing. Failures in
the diff or the queue submission are logged and never reach the caller.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable, Iterator, Optional

from assetgc.configs import get_logger
from assetgc.extract import extract_all
from assetgc.models import ResourceKind, StorageReference

if TYPE_CHECKING:
    from assetgc.cleanup.queue import DeletionQueue

logger = get_logger("cleanup.reconciler")


@dataclass
class ReconcileResult:
    """What one reconciliation queued."""

    initial_count: int = 0
    final_count: int = 0
    queued: dict[str, list[str]] = field(default_factory=dict)  # kind -> ids
    error: Optional[str] = None

    @property
    def queued_count(self) -> int:
        return sum(len(ids) for ids in self.queued.values())


def diff_assets(
    initial: dict[str, StorageReference],
    final: dict[str, StorageReference],
    removed_ids: Iterable[str] = (),
) -> dict[str, StorageReference]:
    """
    References held before the mutation and not after it.

    Explicitly removed ids count only if they were held before; kinds follow
    the before-state tagging.

    Args:
        initial: References extracted from the state before the mutation
        final: References extracted from the committed payload
        removed_ids: Ids the caller explicitly removed

    Returns:
        Dict of storage id -> StorageReference to delete
    """
    to_delete = {public_id: ref for public_id, ref in initial.items() if public_id not in final}
    for public_id in removed_ids:
        if public_id in initial:
            to_delete[public_id] = initial[public_id]
    return to_delete


def group_by_kind(refs: dict[str, StorageReference] | Iterable[StorageReference]) -> dict[ResourceKind, list[str]]:
    """Group references into per-kind id lists (ids sorted)."""
    values = refs.values() if isinstance(refs, dict) else refs
    groups: dict[ResourceKind, list[str]] = {}
    for ref in values:
        groups.setdefault(ref.kind, []).append(ref.id)
    return {kind: sorted(ids) for kind, ids in groups.items()}


class MutationTracker:
    """Holds the before-state references of one tracked mutation."""

    def __init__(self, schema: str, initial: dict[str, StorageReference]):
        self.schema = schema
        self.initial = initial
        self.final: Optional[dict[str, StorageReference]] = None
        self.removed_ids: list[str] = []
        self.deleted = False
        self._payload: Any = None

    @property
    def finalized(self) -> bool:
        return self.deleted or self.final is not None or self._payload is not None

    def finalize(self, payload: Any, removed_ids: Iterable[str] = ()) -> None:
        """
        Record the committed after-state.

        Args:
            payload: Document as written by the mutation
            removed_ids: Ids the caller explicitly removed
        """
        self._payload = payload
        self.removed_ids = [i for i in removed_ids if isinstance(i, str)]

    def mark_deleted(self) -> None:
        """Record that the entity itself was deleted; everything it held goes."""
        self.deleted = True
        self.final = {}

    def resolve_final(self) -> dict[str, StorageReference]:
        if self.final is None:
            self.final = extract_all(self.schema, self._payload, strict=True)
        return self.final


class AssetReconciler:
    """Turns tracked mutations into deletion queue submissions."""

    def __init__(self, queue: "DeletionQueue"):
        self.queue = queue

    @contextmanager
    def track(self, schema: str, before_state: Any) -> Iterator[MutationTracker]:
        """
        Track one mutation of an entity.

        Args:
            schema: Schema name of the entity
            before_state: Loaded current state (nested sub-documents included)

        Yields:
            MutationTracker; call finalize() or mark_deleted() after commit
        """
        initial = extract_all(schema, before_state)
        tracker = MutationTracker(schema, initial)

        # Exceptions from the caller's transaction propagate from here
        yield tracker

        if not tracker.finalized:
            logger.warning(f"Tracked {schema} mutation ended without finalize(); nothing queued")
            return
        self._apply(tracker)

    def reconcile(
        self,
        schema: str,
        before_state: Any,
        after_state: Any,
        removed_ids: Iterable[str] = (),
    ) -> ReconcileResult:
        """Reconcile a mutation whose before and after states are both in hand."""
        tracker = MutationTracker(schema, extract_all(schema, before_state))
        if after_state is None:
            tracker.mark_deleted()
        else:
            tracker.finalize(after_state, removed_ids)
        return self._apply(tracker)

    def _apply(self, tracker: MutationTracker) -> ReconcileResult:
        result = ReconcileResult(initial_count=len(tracker.initial))
        try:
            final = tracker.resolve_final()
            result.final_count = len(final)
            to_delete = diff_assets(tracker.initial, final, tracker.removed_ids)
            for kind, ids in group_by_kind(to_delete).items():
                if self.queue.submit(ids, kind):
                    result.queued[kind.value] = ids
                else:
                    logger.error(f"Dropped {len(ids)} '{kind.value}' assets from {tracker.schema} update")
        except Exception as e:
            result.error = str(e)
            logger.error(f"Asset reconciliation failed for {tracker.schema}: {e}")
            return result

        if result.queued_count:
            logger.info(f"{tracker.schema}: queued {result.queued_count} unreferenced assets for deletion")
        else:
            logger.debug(f"{tracker.schema}: no assets released")
        return result
