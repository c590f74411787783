"""
Orphan Sweep

Full reconciliation of the blob store against every document reference.
"""

from assetgc.sweep.scanner import (
    SweepResult,
    classify_asset,
    collect_known_ids,
    find_orphans,
    format_dry_run_report,
    is_excluded,
    run_sweep,
    scan_store,
)

__all__ = [
    "SweepResult",
    "classify_asset",
    "collect_known_ids",
    "find_orphans",
    "format_dry_run_report",
    "is_excluded",
    "run_sweep",
    "scan_store",
]
