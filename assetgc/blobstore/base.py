"""
Base Blob Store Interface

The two operations the asset lifecycle consumes from the external store:
paginated listing per (resource kind x access mode), and destroy by id.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Iterator, Optional

from assetgc.models import ResourceKind, StoreAsset

# Outcomes reported by destroy()
DESTROY_DELETED = "deleted"
DESTROY_NOT_FOUND = "not_found"


@dataclass
class ListPage:
    """One page of a store listing."""

    items: list[StoreAsset] = field(default_factory=list)
    next_cursor: Optional[str] = None


@dataclass
class DestroyResult:
    """Outcome of a destroy call."""

    public_id: str
    outcome: str  # DESTROY_DELETED or DESTROY_NOT_FOUND
    kind: Optional[ResourceKind] = None
    access_mode: Optional[str] = None

    @property
    def deleted(self) -> bool:
        return self.outcome == DESTROY_DELETED


class BlobStore(ABC):
    """
    Abstract base class for blob store clients.

    Implementations raise StoreListingError from list_page and
    StoreDeletionError from destroy; callers decide whether that is fatal.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Store name for logging and identification."""
        pass

    @abstractmethod
    def list_page(
        self,
        kind: ResourceKind,
        access_mode: str,
        cursor: Optional[str] = None,
        page_size: int = 500,
    ) -> ListPage:
        """
        Fetch one page of assets of a kind and access mode.

        Args:
            kind: image, video or raw
            access_mode: upload or private
            cursor: Cursor returned by the previous page (None for the first)
            page_size: Maximum assets per page

        Returns:
            ListPage with items and the next cursor (None when exhausted)
        """
        pass

    @abstractmethod
    def destroy(
        self,
        public_id: str,
        kind: ResourceKind,
        access_mode: Optional[str] = None,
    ) -> DestroyResult:
        """
        Delete one asset.

        Args:
            public_id: Storage id
            kind: Resource kind; AUTO means the kind is unknown
            access_mode: upload or private; None means unknown

        Returns:
            DestroyResult (not_found is an outcome, not an error)
        """
        pass

    def iter_assets(
        self,
        kind: ResourceKind,
        access_mode: str,
        page_size: int = 500,
    ) -> Iterator[StoreAsset]:
        """Follow cursors until the listing is exhausted."""
        cursor: Optional[str] = None
        while True:
            page = self.list_page(kind, access_mode, cursor=cursor, page_size=page_size)
            yield from page.items
            cursor = page.next_cursor
            if not cursor:
                break
