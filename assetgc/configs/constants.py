"""
AssetGC Constants

Static configuration values that rarely change: resource kinds, access modes,
batch and page sizes, excluded folders and timeout configuration.
"""

# --- Blob Store Scopes ---
# Every (resource kind x access mode) combination the store supports

RESOURCE_KINDS = ("image", "video", "raw")

ACCESS_MODES = ("upload", "private")

# --- Sweep Limits ---

DEFAULT_BATCH_SIZE = 5000  # Documents per batch (phase 1)
DEFAULT_PAGE_SIZE = 500  # Assets per store listing page (phase 2, store max)
DEFAULT_REPORT_LIMIT = 50  # Candidates printed in a dry-run report
ACCOUNT_MESSAGE_BATCH_SIZE = 500  # Messages per batch when purging an account

# Folders whose lifecycle is owned by another subsystem
DEFAULT_EXCLUDED_FOLDERS = frozenset({"b2b_documents", "user_messages"})

# --- Deletion Queue ---

DELETION_QUEUE_MAXSIZE = 1000  # Pending batches before new ones are dropped

# --- Timeout Configuration ---
# Centralized timeout values (in seconds)

TIMEOUTS = {
    "http_default": 10,
    "store_list": 30,  # One listing page
    "store_destroy": 15,  # One destroy call
    "queue_stop": 5,  # Worker thread join on shutdown
}


def get_timeout(key: str, default: int | float | None = None) -> int | float:
    """
    Get a timeout value by key.

    Args:
        key: Timeout key from TIMEOUTS dict
        default: Default value if key not found

    Returns:
        Timeout value in seconds
    """
    if default is None:
        default = TIMEOUTS.get("http_default", 10)
    return TIMEOUTS.get(key, default)
