"""
Asset Cleanup

Request-flow cleanup: the differential reconciler, the account purge and the
deletion queue both of them feed.
"""

from assetgc.cleanup.account import collect_account_assets, purge_account_assets
from assetgc.cleanup.queue import DeletionBatch, DeletionQueue
from assetgc.cleanup.reconciler import (
    AssetReconciler,
    MutationTracker,
    ReconcileResult,
    diff_assets,
    group_by_kind,
)

__all__ = [
    # Deletion queue
    "DeletionBatch",
    "DeletionQueue",
    # Reconciler
    "AssetReconciler",
    "MutationTracker",
    "ReconcileResult",
    "diff_assets",
    "group_by_kind",
    # Account purge
    "collect_account_assets",
    "purge_account_assets",
]
