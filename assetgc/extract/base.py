"""
Base Extractor Interface

Abstract base class that all schema extractors implement, plus the shape-safe
helpers they share. Extractors are pure: they read only the fields of the
document they are given and never issue additional reads.
"""

from abc import ABC, abstractmethod
from typing import Any, Iterator, Optional

from assetgc.configs import get_logger
from assetgc.exceptions import AssetGCError
from assetgc.models import ResourceKind, StorageReference

logger = get_logger("extract")


class ExtractionError(AssetGCError):
    """A document could not be fully traversed."""

    pass


class AssetCollector:
    """
    Accumulates storage references for one document.

    When the same id is reached through two fields, a specific kind replaces
    an earlier AUTO tag; otherwise the first tag is kept.
    """

    def __init__(self) -> None:
        self._refs: dict[str, StorageReference] = {}

    def add(self, public_id: Any, kind: ResourceKind, path: str) -> None:
        if not isinstance(public_id, str):
            return
        public_id = public_id.strip()
        if not public_id:
            return

        existing = self._refs.get(public_id)
        if existing is None or (not existing.kind.is_specific and kind.is_specific):
            self._refs[public_id] = StorageReference(id=public_id, kind=kind, owner_path=path)

    def add_from(
        self,
        obj: Any,
        key: str,
        default: ResourceKind,
        path: str,
        forced: Optional[ResourceKind] = None,
    ) -> None:
        """Add obj[key] when obj is a dict, resolving the kind from obj['resourceType']."""
        if not isinstance(obj, dict):
            return
        kind = resolve_kind(obj.get("resourceType"), default, forced)
        self.add(obj.get(key), kind, join_path(path, key))

    @property
    def refs(self) -> dict[str, StorageReference]:
        return dict(self._refs)


def resolve_kind(
    stored: Any,
    default: ResourceKind,
    forced: Optional[ResourceKind] = None,
) -> ResourceKind:
    """
    Pick the kind for one reference.

    A kind fixed by the parent field always wins. A stored annotation wins
    over the field default only when it is a specific kind (not auto).
    """
    if forced is not None:
        return forced
    parsed = ResourceKind.parse(stored)
    if parsed is not None and parsed.is_specific:
        return parsed
    return default


def join_path(prefix: str, key: str) -> str:
    return f"{prefix}.{key}" if prefix else key


def get_path(doc: Any, path: str) -> Any:
    """Follow a dotted path through nested dicts; None if any step is missing."""
    current = doc
    for part in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(part)
    return current


def iter_objects(value: Any, path: str) -> Iterator[tuple[str, dict]]:
    """
    Yield (path, item) for every dict in a list-valued field.

    A single dict is treated as a one-element list; anything else yields nothing.
    """
    if isinstance(value, dict):
        yield path, value
    elif isinstance(value, (list, tuple)):
        for i, item in enumerate(value):
            if isinstance(item, dict):
                yield f"{path}[{i}]", item
            elif item is not None:
                logger.debug(f"Skipping non-object entry at {path}[{i}]")


def has_path(doc: Any, path: str) -> bool:
    """
    Check whether a dotted path leads to a non-empty value.

    Lists fan out: the path is present if any element satisfies the rest of it.
    """
    head, _, rest = path.partition(".")

    if isinstance(doc, (list, tuple)):
        return any(has_path(item, path) for item in doc)
    if not isinstance(doc, dict):
        return False

    value = doc.get(head)
    if not rest:
        return value not in (None, "", [], {})
    return has_path(value, rest)


class SchemaExtractor(ABC):
    """
    Abstract base class for schema-specific reference extractors.

    Each schema (user, coach, program, lesson, ...) implements this interface
    so that exhaustiveness can be tested one schema at a time.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the schema name (e.g., 'user', 'lesson')."""
        pass

    @property
    @abstractmethod
    def existence_paths(self) -> tuple[str, ...]:
        """
        Dotted paths whose presence means a document may hold a reference.

        Every asset-bearing field must be reachable from one of these paths,
        or the sweep will never load the document.
        """
        pass

    @property
    def collection(self) -> str:
        """Document collection holding this schema."""
        return self.name

    @property
    def index_fields(self) -> tuple[str, ...]:
        """Scalar fields the document store keeps filterable (owner links)."""
        return ()

    @abstractmethod
    def collect(self, doc: dict, collector: AssetCollector, prefix: str = "") -> None:
        """
        Add every reference held by doc to the collector.

        Args:
            doc: Document (or lean projection) of this schema
            collector: Reference accumulator
            prefix: Path of doc inside an enclosing document
        """
        pass

    def holds_references(self, doc: Any) -> bool:
        """True if any existence path is populated."""
        return any(has_path(doc, path) for path in self.existence_paths)

    def extract(self, doc: Any, strict: bool = False) -> dict[str, StorageReference]:
        """
        Extract all storage references from a document.

        Args:
            doc: Document of this schema
            strict: Raise ExtractionError instead of returning a partial result

        Returns:
            Dict of storage id -> StorageReference
        """
        if not isinstance(doc, dict):
            if strict and doc is not None:
                raise ExtractionError(f"Expected a {self.name} document", {"type": type(doc).__name__})
            return {}

        collector = AssetCollector()
        try:
            self.collect(doc, collector)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            if strict:
                raise ExtractionError(
                    f"Failed to extract references from {self.name}",
                    {"id": str(doc.get("_id", "")), "error": str(e)},
                ) from e
            logger.warning(f"Partial extraction for {self.name} {doc.get('_id', '?')}: {e}")
        return collector.refs


# Registry of extractors by schema name
_extractors: dict[str, SchemaExtractor] = {}


def register_extractor(extractor: SchemaExtractor) -> None:
    """Register an extractor for a schema."""
    _extractors[extractor.name] = extractor


def get_extractor(schema: str) -> Optional[SchemaExtractor]:
    """
    Get the extractor for a schema.

    Args:
        schema: Schema name (user, coach, program, lesson, ...)

    Returns:
        SchemaExtractor or None if the schema carries no asset fields
    """
    return _extractors.get(schema)


def list_extractors() -> list[SchemaExtractor]:
    """All registered extractors, in registration order."""
    return list(_extractors.values())
