"""
Sweep Scanner

Periodic full-reconciliation pass that finds store assets no document
references any more.

Phases:
1. Mark:    extract every known storage id from the document store
2. Scan:    list every (resource kind x access mode) scope in the blob store
3. Diff:    listed ids not in the known set, minus excluded folders
4. Persist: set-on-insert into the orphan registry (or report, in dry-run)

The known-id set is built completely before the diff and belongs to one run.
A listing failure aborts the run before anything is persisted.
"""

import json
import time
from dataclasses import asdict, dataclass, field
from typing import Callable, Iterable, Optional

from assetgc.blobstore import BlobStore
from assetgc.configs import get_logger
from assetgc.configs.constants import (
    ACCESS_MODES,
    DEFAULT_BATCH_SIZE,
    DEFAULT_EXCLUDED_FOLDERS,
    DEFAULT_PAGE_SIZE,
    DEFAULT_REPORT_LIMIT,
    RESOURCE_KINDS,
)
from assetgc.extract import SchemaExtractor, list_extractors
from assetgc.models import OrphanCandidateRecord, ResourceKind, StoreAsset
from assetgc.storage import DocumentStore, OrphanRegistry

logger = get_logger("sweep")

# Ordered (classification, predicate(path, public_id)); first match wins
CLASSIFICATION_RULES: tuple[tuple[str, Callable[[str, str], bool]], ...] = (
    ("profile_picture", lambda path, public_id: "profile_pictures" in path),
    ("program_asset", lambda path, public_id: "/programs/" in path),
    ("assignment_submission", lambda path, public_id: "/assignments/" in path),
    ("session_recording", lambda path, public_id: "session_recordings" in path),
    ("session_resource", lambda path, public_id: "/resources" in path or "/course_materials" in path),
    ("user_background", lambda path, public_id: "/backgrounds" in path),
    ("coach_verification_doc", lambda path, public_id: "/verification" in path),
    ("b2b_invoice", lambda path, public_id: "b2b_documents" in path or public_id.startswith("b2b_doc_")),
    ("coach_application_doc", lambda path, public_id: "coach_applications" in path),
    ("feedback_attachment", lambda path, public_id: path.startswith("feedback_attachments")),
    ("session_image", lambda path, public_id: "/session_images" in path),
)


@dataclass
class SweepResult:
    """Counts reported by one sweep run."""

    dry_run: bool
    known_ids: int = 0
    scanned: int = 0
    candidates: int = 0
    inserted: int = 0
    matched: int = 0
    scopes: dict[str, int] = field(default_factory=dict)  # "kind/access_mode" -> assets listed
    duration_seconds: float = 0.0
    report: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


def classify_asset(folder: Optional[str], public_id: Optional[str]) -> str:
    """
    Tag an asset with the feature it most likely belonged to.

    Args:
        folder: Store folder (may be empty)
        public_id: Storage id

    Returns:
        Classification tag, "unknown" when no rule matches
    """
    folder = folder or ""
    public_id = public_id or ""
    if not folder and not public_id:
        return "unknown"

    if "/" in public_id or not folder:
        path = public_id
    else:
        path = f"{folder}/{public_id}"

    for classification, matches in CLASSIFICATION_RULES:
        if matches(path, public_id):
            return classification
    return "unknown"


def is_excluded(folder: Optional[str], excluded_folders: Iterable[str]) -> bool:
    """True if the folder (or one of its parents) is on the exclusion list."""
    if not folder:
        return False
    return any(folder == excluded or folder.startswith(f"{excluded}/") for excluded in excluded_folders)


# --- Phase 1: Mark ---


def collect_known_ids(
    documents: DocumentStore,
    extractors: Optional[Iterable[SchemaExtractor]] = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> set[str]:
    """
    Build the set of every storage id referenced by any document.

    Args:
        documents: Application document store
        extractors: Extractors to run (defaults to every registered one)
        batch_size: Documents per batch

    Returns:
        Set of referenced storage ids
    """
    known_ids: set[str] = set()
    for extractor in extractors if extractors is not None else list_extractors():
        before = len(known_ids)
        batches = 0
        for batch in documents.iter_batches(extractor.collection, batch_size=batch_size, only_with_refs=True):
            batches += 1
            for doc in batch:
                known_ids.update(extractor.extract(doc))
        logger.info(
            f"Mark: {extractor.name} added {len(known_ids) - before} ids "
            f"({batches} batches, {len(known_ids)} known)"
        )
    return known_ids


# --- Phase 2: Scan ---


def scan_store(
    blob_store: BlobStore,
    kinds: Iterable[str] = RESOURCE_KINDS,
    access_modes: Iterable[str] = ACCESS_MODES,
    page_size: int = DEFAULT_PAGE_SIZE,
    scope_counts: Optional[dict[str, int]] = None,
) -> list[StoreAsset]:
    """
    List every asset in the given scopes.

    Raises:
        StoreListingError: Any page of any scope could not be listed
    """
    access_modes = list(access_modes)
    assets: list[StoreAsset] = []
    for kind in kinds:
        for access_mode in access_modes:
            scope = f"{kind}/{access_mode}"
            logger.info(f"Scan: listing {scope}")
            count = 0
            for asset in blob_store.iter_assets(ResourceKind(kind), access_mode, page_size=page_size):
                assets.append(asset)
                count += 1
            if scope_counts is not None:
                scope_counts[scope] = count
            logger.info(f"Scan: {count} assets in {scope}")
    return assets


# --- Phase 3: Diff ---


def find_orphans(
    assets: Iterable[StoreAsset],
    known_ids: set[str],
    excluded_folders: Iterable[str] = DEFAULT_EXCLUDED_FOLDERS,
) -> list[OrphanCandidateRecord]:
    """
    Turn listed assets nobody references into orphan candidates.

    Args:
        assets: Assets from scan_store
        known_ids: Ids from collect_known_ids
        excluded_folders: Folders managed elsewhere

    Returns:
        Candidate records, in listing order, one per id
    """
    excluded = tuple(excluded_folders)
    candidates: dict[str, OrphanCandidateRecord] = {}
    for asset in assets:
        if asset.public_id in known_ids or asset.public_id in candidates:
            continue
        if is_excluded(asset.folder, excluded):
            continue
        candidates[asset.public_id] = OrphanCandidateRecord(
            id=asset.public_id,
            kind=asset.kind,
            classification=classify_asset(asset.folder, asset.public_id),
            folder=asset.folder,
            byte_size=asset.byte_size,
            format=asset.format,
            created_at_store=asset.created_at,
            access_mode=asset.access_mode,
        )
    return list(candidates.values())


# --- Phase 4: Report ---


def format_dry_run_report(candidates: list[OrphanCandidateRecord], limit: int = DEFAULT_REPORT_LIMIT) -> str:
    """
    Human-readable summary of what a real run would persist.

    The first `limit` candidates are rendered as JSON, followed by the total.
    """
    if not candidates:
        return "--- No orphan candidates found ---"

    shown = [
        {key: value for key, value in record.to_dict().items() if key not in ("status", "status_updated_at", "last_error")}
        for record in candidates[:limit]
    ]
    lines = ["--- POTENTIAL ORPHANS FOUND ---", json.dumps(shown, indent=2)]
    if len(candidates) > limit:
        lines.append(f"... and {len(candidates) - limit} more.")
    lines.append(f"--- Total: {len(candidates)} ---")
    return "\n".join(lines)


def run_sweep(
    documents: DocumentStore,
    registry: OrphanRegistry,
    blob_store: BlobStore,
    dry_run: bool = False,
    batch_size: int = DEFAULT_BATCH_SIZE,
    page_size: int = DEFAULT_PAGE_SIZE,
    excluded_folders: Iterable[str] = DEFAULT_EXCLUDED_FOLDERS,
    report_limit: int = DEFAULT_REPORT_LIMIT,
) -> SweepResult:
    """
    Run one full sweep.

    Args:
        documents: Application document store
        registry: Orphan registry (untouched in dry-run mode)
        blob_store: Blob store client
        dry_run: Report candidates instead of persisting them
        batch_size: Documents per batch in the mark phase
        page_size: Assets per listing page
        excluded_folders: Folders never flagged
        report_limit: Candidates rendered in the dry-run report

    Returns:
        SweepResult with per-phase counts

    Raises:
        StoreListingError: The store could not be listed (nothing persisted)
    """
    started = time.monotonic()
    result = SweepResult(dry_run=dry_run)
    logger.info(f"Sweep started (dry_run={dry_run})")

    known_ids = collect_known_ids(documents, batch_size=batch_size)
    result.known_ids = len(known_ids)
    logger.info(f"Mark complete: {result.known_ids} known ids")

    assets = scan_store(blob_store, page_size=page_size, scope_counts=result.scopes)
    result.scanned = len(assets)
    logger.info(f"Scan complete: {result.scanned} assets listed")

    candidates = find_orphans(assets, known_ids, excluded_folders)
    result.candidates = len(candidates)
    logger.info(f"Diff complete: {result.candidates} orphan candidates")

    if dry_run:
        result.report = format_dry_run_report(candidates, report_limit)
        logger.info("Persist skipped: dry run")
    elif candidates:
        upserted = registry.upsert_candidates(candidates)
        result.inserted = upserted.inserted
        result.matched = upserted.matched
    else:
        logger.info("Persist skipped: no candidates")

    result.duration_seconds = round(time.monotonic() - started, 3)
    logger.info(
        f"Sweep finished in {result.duration_seconds}s: {result.candidates} candidates, "
        f"{result.inserted} new, {result.matched} already tracked"
    )
    return result
