"""
Activity Extractors

References held by live sessions, chat messages, invoices and leads.
"""

from assetgc.extract.base import (
    AssetCollector,
    SchemaExtractor,
    iter_objects,
    join_path,
    register_extractor,
)
from assetgc.models import ResourceKind

B2B_INVOICE_PARTY = "coach_to_platform"


def b2b_invoice_public_id(invoice_id: str) -> str:
    """Storage id of the generated PDF for a coach-to-platform invoice."""
    return f"b2b_documents/b2b_doc_{invoice_id}"


class SessionExtractor(SchemaExtractor):
    """Recordings, session images and course materials."""

    @property
    def name(self) -> str:
        return "session"

    @property
    def existence_paths(self) -> tuple[str, ...]:
        return ("recordings.publicId", "sessionImages.publicId", "courseMaterials.publicId")

    @property
    def index_fields(self) -> tuple[str, ...]:
        return ("coach",)

    def collect(self, doc: dict, collector: AssetCollector, prefix: str = "") -> None:
        for path, recording in iter_objects(doc.get("recordings"), join_path(prefix, "recordings")):
            collector.add_from(recording, "publicId", ResourceKind.VIDEO, path, forced=ResourceKind.VIDEO)
        for path, image in iter_objects(doc.get("sessionImages"), join_path(prefix, "sessionImages")):
            collector.add_from(image, "publicId", ResourceKind.IMAGE, path)
        for path, material in iter_objects(doc.get("courseMaterials"), join_path(prefix, "courseMaterials")):
            collector.add_from(material, "publicId", ResourceKind.AUTO, path)


class MessageExtractor(SchemaExtractor):
    """Chat attachments; older messages store a single object instead of a list."""

    @property
    def name(self) -> str:
        return "message"

    @property
    def existence_paths(self) -> tuple[str, ...]:
        return ("attachment.publicId",)

    @property
    def index_fields(self) -> tuple[str, ...]:
        return ("senderId",)

    def collect(self, doc: dict, collector: AssetCollector, prefix: str = "") -> None:
        for path, attachment in iter_objects(doc.get("attachment"), join_path(prefix, "attachment")):
            collector.add_from(attachment, "publicId", ResourceKind.AUTO, path)


class InvoiceExtractor(SchemaExtractor):
    """Generated B2B invoice PDFs; the id is derived, not stored."""

    @property
    def name(self) -> str:
        return "invoice"

    @property
    def existence_paths(self) -> tuple[str, ...]:
        return ("pdfUrl",)

    def collect(self, doc: dict, collector: AssetCollector, prefix: str = "") -> None:
        if doc.get("invoiceParty") != B2B_INVOICE_PARTY or not doc.get("pdfUrl"):
            return
        invoice_id = doc.get("_id")
        if invoice_id in (None, ""):
            return
        collector.add(b2b_invoice_public_id(str(invoice_id)), ResourceKind.RAW, join_path(prefix, "pdfUrl"))


class LeadExtractor(SchemaExtractor):
    """Documents uploaded with a coach application lead."""

    @property
    def name(self) -> str:
        return "lead"

    @property
    def existence_paths(self) -> tuple[str, ...]:
        return ("uploadedDocuments",)

    def collect(self, doc: dict, collector: AssetCollector, prefix: str = "") -> None:
        for path, document in iter_objects(doc.get("uploadedDocuments"), join_path(prefix, "uploadedDocuments")):
            collector.add_from(document, "publicId", ResourceKind.RAW, path)


register_extractor(SessionExtractor())
register_extractor(MessageExtractor())
register_extractor(InvoiceExtractor())
register_extractor(LeadExtractor())
