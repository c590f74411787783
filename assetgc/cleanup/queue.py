"""
Deletion Queue

Accepts (ids, kind) batches from the reconciler, the account purge and the
orphan review workflow, and deletes them from the blob store on a background
thread. Submitting never blocks: when the queue is full the batch is dropped
and logged, and the next sweep finds the leaked assets.

Failures are logged and reported through the batch's on_failure callback.
Nothing is retried here.
"""

import queue
import threading
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from assetgc.blobstore import BlobStore
from assetgc.configs import get_logger, get_timeout
from assetgc.configs.constants import DELETION_QUEUE_MAXSIZE
from assetgc.models import ResourceKind, utc_now

logger = get_logger("cleanup.queue")

POLL_INTERVAL = 0.5  # seconds between checks for stop while idle

SuccessCallback = Callable[[str], None]
FailureCallback = Callable[[str, str], None]


@dataclass
class DeletionBatch:
    """One submitted group of same-kind ids."""

    ids: list[str]
    kind: ResourceKind
    access_mode: Optional[str] = None
    on_success: Optional[SuccessCallback] = None
    on_failure: Optional[FailureCallback] = None
    submitted_at: str = field(default_factory=lambda: utc_now().isoformat())


@dataclass
class QueueStats:
    submitted: int = 0  # ids accepted
    deleted: int = 0  # ids gone from the store (deleted or already missing)
    failed: int = 0
    dropped: int = 0  # ids rejected because the queue was full


class DeletionQueue:
    """
    Bounded background worker for best-effort blob deletion.

    The worker thread starts on the first submit (or an explicit start()).
    """

    def __init__(self, blob_store: BlobStore, maxsize: int = DELETION_QUEUE_MAXSIZE):
        self._store = blob_store
        self._queue: "queue.Queue[DeletionBatch]" = queue.Queue(maxsize=maxsize)
        self._running = False
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)
        self._pending = 0
        self._stats = QueueStats()

    # --- Lifecycle ---

    def start(self) -> None:
        """Start the background worker thread."""
        with self._lock:
            if self._running:
                return
            self._running = True
            self._thread = threading.Thread(target=self._run_loop, name="assetgc-deletion", daemon=True)
            self._thread.start()
        logger.info("Deletion queue started")

    def stop(self, timeout: Optional[float] = None) -> None:
        """
        Stop the worker.

        Batches still queued are abandoned: their ids count as dropped and
        each one is reported to the batch's failure callback.
        """
        with self._lock:
            self._running = False
            thread = self._thread
            self._thread = None
        if thread:
            thread.join(timeout=timeout if timeout is not None else get_timeout("queue_stop"))

        abandoned = self._drain()
        if abandoned:
            logger.warning(f"Deletion queue stopped with {abandoned} assets still queued; abandoned")
        logger.info("Deletion queue stopped")

    def _drain(self) -> int:
        abandoned = 0
        while True:
            try:
                batch = self._queue.get_nowait()
            except queue.Empty:
                break
            abandoned += len(batch.ids)
            for public_id in batch.ids:
                self._notify(batch.on_failure, public_id, "deletion queue stopped")
            with self._idle:
                self._stats.dropped += len(batch.ids)
                self._pending -= 1
                self._idle.notify_all()
        return abandoned

    @property
    def running(self) -> bool:
        return self._running

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until every submitted batch has been processed.

        Returns:
            True if drained, False if the timeout expired first
        """
        with self._idle:
            return self._idle.wait_for(lambda: self._pending == 0, timeout=timeout)

    def stats(self) -> dict[str, int]:
        with self._lock:
            return {
                "submitted": self._stats.submitted,
                "deleted": self._stats.deleted,
                "failed": self._stats.failed,
                "dropped": self._stats.dropped,
                "pending_batches": self._pending,
            }

    # --- Submission ---

    def submit(
        self,
        ids: Iterable[str],
        kind: ResourceKind,
        access_mode: Optional[str] = None,
        on_success: Optional[SuccessCallback] = None,
        on_failure: Optional[FailureCallback] = None,
    ) -> bool:
        """
        Queue ids of one kind for deletion without waiting for the store.

        Args:
            ids: Storage ids (duplicates and empty values are dropped)
            kind: Resource kind shared by every id in the batch
            access_mode: upload/private when known
            on_success: Called with each id once it is gone from the store
            on_failure: Called with each id and an error message on failure

        Returns:
            True if accepted (or nothing to do), False if dropped
        """
        unique_ids = [i for i in dict.fromkeys(ids) if isinstance(i, str) and i]
        if not unique_ids:
            return True

        batch = DeletionBatch(
            ids=unique_ids,
            kind=ResourceKind(kind),
            access_mode=access_mode,
            on_success=on_success,
            on_failure=on_failure,
        )

        if not self._running:
            self.start()

        with self._lock:
            try:
                self._queue.put_nowait(batch)
            except queue.Full:
                self._stats.dropped += len(unique_ids)
                logger.error(
                    f"Deletion queue full; dropped {len(unique_ids)} '{batch.kind.value}' assets: {unique_ids[:10]}"
                )
                return False
            self._pending += 1
            self._stats.submitted += len(unique_ids)

        logger.info(f"Queued {len(unique_ids)} '{batch.kind.value}' assets for deletion")
        return True

    # --- Worker ---

    def _run_loop(self) -> None:
        while self._running:
            try:
                batch = self._queue.get(timeout=POLL_INTERVAL)
            except queue.Empty:
                continue

            try:
                self._process_batch(batch)
            except Exception as e:
                logger.error(f"Deletion batch processing error: {e}")
            finally:
                with self._idle:
                    self._pending -= 1
                    self._idle.notify_all()

    def _process_batch(self, batch: DeletionBatch) -> None:
        deleted = failed = 0
        for public_id in batch.ids:
            try:
                result = self._store.destroy(public_id, batch.kind, batch.access_mode)
            except Exception as e:
                failed += 1
                logger.error(f"Failed to delete {public_id} ({batch.kind.value}): {e}")
                self._notify(batch.on_failure, public_id, str(e))
                continue

            deleted += 1
            if not result.deleted:
                logger.info(f"Asset already absent from store: {public_id}")
            self._notify(batch.on_success, public_id)

        with self._lock:
            self._stats.deleted += deleted
            self._stats.failed += failed
        logger.info(f"Deletion batch done ({batch.kind.value}): {deleted} removed, {failed} failed")

    @staticmethod
    def _notify(callback: Optional[Callable[..., None]], *args: str) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception as e:
            logger.warning(f"Deletion callback failed for {args[0]}: {e}")
