"""
AssetGC Exception Hierarchy

Centralized exception classes for structured error handling across the codebase.
All AssetGC-specific exceptions inherit from AssetGCError.

Usage:
    from assetgc.exceptions import AssetGCError, StoreListingError

    try:
        run_sweep(documents, registry, blob_store)
    except StoreListingError as e:
        logger.error(f"Sweep aborted: {e}")
"""


class AssetGCError(Exception):
    """Base exception for all AssetGC errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} ({self.details})"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(AssetGCError):
    """Error in AssetGC configuration."""

    pass


class MissingConfigError(ConfigurationError):
    """Required configuration value is missing."""

    def __init__(self, message: str, missing: list[str] | None = None):
        details = {"missing": ", ".join(missing)} if missing else {}
        super().__init__(message, details)
        self.missing = missing or []


# =============================================================================
# Storage Errors
# =============================================================================


class StorageError(AssetGCError):
    """Base class for storage-related errors."""

    pass


class DocumentStoreError(StorageError):
    """Error reading or writing application documents."""

    pass


class RegistryError(StorageError):
    """Error with orphan registry operations."""

    pass


class RecordNotFoundError(RegistryError):
    """Orphan candidate with given id is not in the registry."""

    pass


class InvalidTransitionError(RegistryError):
    """Requested status change is not allowed by the review workflow."""

    def __init__(self, public_id: str, current: str, requested: str):
        super().__init__(
            f"Cannot move {public_id} from {current} to {requested}",
            {"current": current, "requested": requested},
        )
        self.public_id = public_id
        self.current = current
        self.requested = requested


# =============================================================================
# Blob Store Errors
# =============================================================================


class BlobStoreError(AssetGCError):
    """Base class for blob store errors."""

    pass


class StoreListingError(BlobStoreError):
    """Listing the blob store failed; a sweep cannot continue without it."""

    def __init__(self, message: str, kind: str | None = None, access_mode: str | None = None):
        details = {}
        if kind:
            details["kind"] = kind
        if access_mode:
            details["access_mode"] = access_mode
        super().__init__(message, details)
        self.kind = kind
        self.access_mode = access_mode


class StoreDeletionError(BlobStoreError):
    """A destroy call against the blob store failed."""

    def __init__(self, message: str, public_id: str | None = None):
        details = {"public_id": public_id} if public_id else {}
        super().__init__(message, details)
        self.public_id = public_id
