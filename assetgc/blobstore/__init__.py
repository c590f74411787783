"""
Blob Store Clients

Interface to the external media store plus the Cloudinary implementation.
"""

from assetgc.blobstore.base import (
    DESTROY_DELETED,
    DESTROY_NOT_FOUND,
    BlobStore,
    DestroyResult,
    ListPage,
)
from assetgc.blobstore.cloudinary import CloudinaryClient, parse_asset
from assetgc.configs.runtime import get_blob_store_settings


def get_blob_store(config: dict | None = None) -> BlobStore:
    """
    Build the configured blob store client.

    Raises:
        MissingConfigError: Credentials are not configured
    """
    return CloudinaryClient.from_settings(get_blob_store_settings(config))


__all__ = [
    "DESTROY_DELETED",
    "DESTROY_NOT_FOUND",
    "BlobStore",
    "DestroyResult",
    "ListPage",
    "CloudinaryClient",
    "parse_asset",
    "get_blob_store",
]
