"""
Orphan Review Endpoints

HTTP endpoints for reviewing orphan candidates, approving them for deletion,
and triggering a sweep.
"""

from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from assetgc.configs import get_full_config, get_logger
from assetgc.configs.services import (
    get_blob_store,
    get_deletion_queue,
    get_document_store,
    get_registry,
)
from assetgc.exceptions import (
    InvalidTransitionError,
    MissingConfigError,
    RecordNotFoundError,
    StoreListingError,
)
from assetgc.models import OrphanStatus
from assetgc.sweep import run_sweep

logger = get_logger("http.orphans")

router = APIRouter()


# --- Request Models ---


class ResolveRequest(BaseModel):
    """Request body for approving candidates for deletion."""
    ids: list[str]


class ErrorRequest(BaseModel):
    """Request body for flagging a candidate as errored."""
    error: str


class SweepRequest(BaseModel):
    """Request body for an on-demand sweep."""
    dry_run: bool = True
    batch_size: Optional[int] = None
    page_size: Optional[int] = None


# --- Endpoints ---


@router.get("/orphans")
def list_orphans(
    status: Optional[OrphanStatus] = None,
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
) -> dict[str, Any]:
    """
    List orphan candidates, oldest discovery first.

    Args:
        status: Optional status filter
        limit: Page size
        offset: Records to skip
    """
    registry = get_registry()
    records = registry.list_candidates(status=status, limit=limit, offset=offset)
    return {
        "orphans": [record.to_dict() for record in records],
        "total": registry.count(status),
        "limit": limit,
        "offset": offset,
    }


@router.get("/orphans/stats")
def orphan_stats() -> dict[str, Any]:
    """Record counts per review status."""
    counts = get_registry().status_counts()
    return {"by_status": counts, "total": sum(counts.values())}


@router.post("/orphans/resolve")
def resolve_orphans(request: ResolveRequest) -> dict[str, Any]:
    """
    Approve pending candidates for deletion.

    Records move to deletion_queued and are removed once the store
    deletion succeeds.
    """
    try:
        queue = get_deletion_queue()
    except MissingConfigError as e:
        raise HTTPException(status_code=503, detail=str(e))

    result = get_registry().resolve(request.ids, queue)
    logger.info(f"Resolve: {len(result.queued)} queued, {len(result.skipped)} skipped, {len(result.not_found)} unknown")
    return {
        "queued": result.queued,
        "skipped": result.skipped,
        "not_found": result.not_found,
    }


@router.post("/orphans/{public_id:path}/error")
def flag_orphan_error(public_id: str, request: ErrorRequest) -> dict[str, Any]:
    """Move a candidate to error with a description."""
    try:
        record = get_registry().transition(public_id, OrphanStatus.ERROR, error=request.error)
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail=f"Orphan {public_id} not found")
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=e.message)
    return record.to_dict()


@router.get("/orphans/{public_id:path}")
def get_orphan(public_id: str) -> dict[str, Any]:
    """Get one orphan candidate by storage id."""
    record = get_registry().get(public_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Orphan {public_id} not found")
    return record.to_dict()


@router.post("/sweep")
def trigger_sweep(request: SweepRequest) -> dict[str, Any]:
    """
    Run a sweep now.

    Defaults to a dry run; pass dry_run=false to persist candidates.
    """
    config = get_full_config()["sweep"]
    try:
        result = run_sweep(
            documents=get_document_store(),
            registry=get_registry(),
            blob_store=get_blob_store(),
            dry_run=request.dry_run,
            batch_size=request.batch_size or config["batch_size"],
            page_size=request.page_size or config["page_size"],
            excluded_folders=config["excluded_folders"],
            report_limit=config["report_limit"],
        )
    except MissingConfigError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except StoreListingError as e:
        logger.error(f"Sweep aborted: {e}")
        raise HTTPException(status_code=502, detail=str(e))
    return result.to_dict()
