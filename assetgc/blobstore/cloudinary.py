"""
Cloudinary Blob Store Client

Built on the Cloudinary SDK Admin API:

Listing:  cloudinary.api.resources(resource_type=kind, type=access_mode, ...)
Deletion: cloudinary.api.delete_resources([public_id], resource_type=kind, type=access_mode)

Credentials travel with every call rather than through the SDK's global
config, so several clients can coexist. Listing pages are retried on
transient failures (rate limiting, 5xx and socket errors, all of which the SDK
raises as RateLimited or GeneralError); anything still failing surfaces as
StoreListingError. Deletion is never retried here.
"""

import posixpath
from typing import Any, Optional

import cloudinary.api
from cloudinary.exceptions import Error as CloudinaryError
from cloudinary.exceptions import GeneralError, NotFound, RateLimited
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from assetgc.blobstore.base import (
    DESTROY_DELETED,
    DESTROY_NOT_FOUND,
    BlobStore,
    DestroyResult,
    ListPage,
)
from assetgc.configs import get_logger, get_timeout
from assetgc.configs.constants import ACCESS_MODES, RESOURCE_KINDS
from assetgc.configs.runtime import BlobStoreSettings
from assetgc.exceptions import StoreDeletionError, StoreListingError
from assetgc.models import ResourceKind, StoreAsset

logger = get_logger("blobstore.cloudinary")

MAX_PAGE_SIZE = 500

RETRYABLE = (GeneralError, RateLimited)


def parse_asset(raw: dict[str, Any], kind: ResourceKind, access_mode: str) -> StoreAsset:
    """Map one listing entry to a StoreAsset."""
    public_id = raw.get("public_id", "")
    folder = raw.get("folder")
    if folder is None:
        folder = raw.get("asset_folder")
    if folder is None:
        folder = posixpath.dirname(public_id)

    return StoreAsset(
        public_id=public_id,
        kind=ResourceKind.parse(raw.get("resource_type")) or kind,
        access_mode=raw.get("type") or access_mode,
        folder=folder or "",
        byte_size=int(raw.get("bytes") or 0),
        format=raw.get("format") or "",
        created_at=raw.get("created_at"),
    )


class CloudinaryClient(BlobStore):
    """Blob store client for the Cloudinary Admin API."""

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        upload_prefix: str = "https://api.cloudinary.com",
    ):
        self.cloud_name = cloud_name
        self._credentials = {
            "cloud_name": cloud_name,
            "api_key": api_key,
            "api_secret": api_secret,
            "upload_prefix": upload_prefix.rstrip("/"),
        }

    @classmethod
    def from_settings(cls, settings: BlobStoreSettings) -> "CloudinaryClient":
        return cls(
            cloud_name=settings.cloud_name,
            api_key=settings.api_key,
            api_secret=settings.api_secret,
            upload_prefix=settings.upload_prefix,
        )

    @property
    def name(self) -> str:
        return "cloudinary"

    # --- Listing ---

    def list_page(
        self,
        kind: ResourceKind,
        access_mode: str,
        cursor: Optional[str] = None,
        page_size: int = MAX_PAGE_SIZE,
    ) -> ListPage:
        kind = ResourceKind(kind)
        if not kind.is_specific:
            raise StoreListingError("Listing requires a specific resource kind", kind=kind.value)

        options: dict[str, Any] = {
            "resource_type": kind.value,
            "type": access_mode,
            "max_results": min(page_size, MAX_PAGE_SIZE),
        }
        if cursor:
            options["next_cursor"] = cursor

        try:
            payload = self._get_page(options)
        except RETRYABLE as e:
            raise StoreListingError(
                f"Store listing kept failing for {kind.value}/{access_mode}: {e}",
                kind=kind.value,
                access_mode=access_mode,
            ) from e
        except CloudinaryError as e:
            raise StoreListingError(
                f"Store rejected listing for {kind.value}/{access_mode}: {e}",
                kind=kind.value,
                access_mode=access_mode,
            ) from e

        items = [parse_asset(raw, kind, access_mode) for raw in payload.get("resources", [])]
        return ListPage(items=items, next_cursor=payload.get("next_cursor") or None)

    @retry(
        wait=wait_exponential(multiplier=1, min=1, max=30),
        stop=stop_after_attempt(3),
        retry=retry_if_exception_type(RETRYABLE),
        reraise=True,
    )
    def _get_page(self, options: dict[str, Any]) -> dict[str, Any]:
        try:
            return cloudinary.api.resources(
                timeout=get_timeout("store_list"), **options, **self._credentials
            )
        except RETRYABLE as e:
            logger.warning(
                f"Transient store error listing {options['resource_type']}/{options['type']}: {e}"
            )
            raise

    # --- Deletion ---

    def destroy(
        self,
        public_id: str,
        kind: ResourceKind,
        access_mode: Optional[str] = None,
    ) -> DestroyResult:
        kind = ResourceKind(kind)
        kinds = [kind.value] if kind.is_specific else list(RESOURCE_KINDS)
        modes = [access_mode] if access_mode else list(ACCESS_MODES)

        # Unknown kind or mode: try each combination until one finds the asset
        for kind_value in kinds:
            for mode in modes:
                if self._delete_one(public_id, kind_value, mode):
                    logger.debug(f"Destroyed {public_id} ({kind_value}/{mode})")
                    return DestroyResult(
                        public_id=public_id,
                        outcome=DESTROY_DELETED,
                        kind=ResourceKind(kind_value),
                        access_mode=mode,
                    )

        return DestroyResult(public_id=public_id, outcome=DESTROY_NOT_FOUND)

    def _delete_one(self, public_id: str, kind: str, access_mode: str) -> bool:
        try:
            response = cloudinary.api.delete_resources(
                [public_id],
                resource_type=kind,
                type=access_mode,
                timeout=get_timeout("store_destroy"),
                **self._credentials,
            )
        except NotFound:
            return False
        except CloudinaryError as e:
            raise StoreDeletionError(f"Destroy request failed: {e}", public_id=public_id) from e

        return response.get("deleted", {}).get(public_id) == DESTROY_DELETED
