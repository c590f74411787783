"""
Data Models for Asset Garbage Collection

Storage references produced by extraction, assets listed from the blob store,
and orphan candidate records kept in the registry.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


class ResourceKind(str, Enum):
    """Coarse blob classification the store requires for list and destroy."""

    IMAGE = "image"
    VIDEO = "video"
    RAW = "raw"
    AUTO = "auto"  # No kind stored; resolved by the store client at deletion time

    @classmethod
    def parse(cls, value: Any) -> Optional["ResourceKind"]:
        """Return the matching kind, or None for anything unrecognised."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return None
        return None

    @property
    def is_specific(self) -> bool:
        return self is not ResourceKind.AUTO


class OrphanStatus(str, Enum):
    """Review workflow states for an orphan candidate."""

    PENDING_REVIEW = "pending_review"
    DELETION_QUEUED = "deletion_queued"
    ERROR = "error"


# Allowed status changes; nothing ever returns to PENDING_REVIEW
STATUS_TRANSITIONS: dict[OrphanStatus, frozenset[OrphanStatus]] = {
    OrphanStatus.PENDING_REVIEW: frozenset({OrphanStatus.DELETION_QUEUED, OrphanStatus.ERROR}),
    OrphanStatus.DELETION_QUEUED: frozenset({OrphanStatus.ERROR}),
    OrphanStatus.ERROR: frozenset(),
}


@dataclass(frozen=True)
class StorageReference:
    """One storage id held by a document, tagged with its resource kind."""

    id: str
    kind: ResourceKind
    owner_path: str = ""  # e.g. "content.presentation.slides[2].imagePublicId"


@dataclass
class StoreAsset:
    """An asset as reported by the blob store listing."""

    public_id: str
    kind: ResourceKind
    access_mode: str = "upload"
    folder: str = ""
    byte_size: int = 0
    format: str = ""
    created_at: Optional[str] = None  # ISO-8601, store-side creation time


@dataclass
class OrphanCandidateRecord:
    """A store-resident asset absent from the known-id set."""

    id: str
    kind: ResourceKind
    classification: str = "unknown"
    folder: str = ""
    byte_size: int = 0
    format: str = ""
    created_at_store: Optional[str] = None
    access_mode: str = "upload"
    discovered_at: str = field(default_factory=lambda: utc_now().isoformat())
    status: OrphanStatus = OrphanStatus.PENDING_REVIEW
    status_updated_at: Optional[str] = None
    last_error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["kind"] = self.kind.value
        data["status"] = self.status.value
        return data


def utc_now() -> datetime:
    """Current time in UTC."""
    return datetime.now(timezone.utc)
