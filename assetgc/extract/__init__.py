"""
Reference Extractors

One extractor per schema that can hold storage ids. Each implements the
SchemaExtractor interface and registers itself on import.
"""

from typing import Any, Iterable

from assetgc.extract.base import (
    AssetCollector,
    ExtractionError,
    SchemaExtractor,
    get_extractor,
    has_path,
    list_extractors,
    register_extractor,
    resolve_kind,
)

# Import extractors to trigger registration
from assetgc.extract.accounts import CoachExtractor, UserExtractor
from assetgc.extract.programs import (
    EnrollmentExtractor,
    LessonExtractor,
    ModuleExtractor,
    ProgramExtractor,
)
from assetgc.extract.activity import (
    InvoiceExtractor,
    LeadExtractor,
    MessageExtractor,
    SessionExtractor,
    b2b_invoice_public_id,
)
from assetgc.models import StorageReference


def extract_all(schema: str, doc: Any, strict: bool = False) -> dict[str, StorageReference]:
    """
    Extract references from a document of the named schema.

    Args:
        schema: Schema name
        doc: Document of that schema
        strict: Raise ExtractionError instead of returning a partial result

    Returns:
        Dict of storage id -> StorageReference (empty for unknown schemas)
    """
    extractor = get_extractor(schema)
    if extractor is None:
        if strict:
            raise ExtractionError(f"No extractor registered for schema: {schema}")
        return {}
    return extractor.extract(doc, strict=strict)


def collect_ids(refs: Iterable[StorageReference] | dict[str, StorageReference]) -> set[str]:
    """Storage ids of a reference collection."""
    if isinstance(refs, dict):
        return set(refs)
    return {ref.id for ref in refs}


__all__ = [
    "AssetCollector",
    "ExtractionError",
    "SchemaExtractor",
    "get_extractor",
    "has_path",
    "list_extractors",
    "register_extractor",
    "resolve_kind",
    "extract_all",
    "collect_ids",
    "b2b_invoice_public_id",
    "UserExtractor",
    "CoachExtractor",
    "ProgramExtractor",
    "ModuleExtractor",
    "LessonExtractor",
    "EnrollmentExtractor",
    "SessionExtractor",
    "MessageExtractor",
    "InvoiceExtractor",
    "LeadExtractor",
]
