from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text

from ledger.core.database import Base
from ledger.models.shared import UUIDType, generate_uuid, utc_now


class InvoiceDocument(Base):
    """Metadata of a file attached to an invoice. The file itself lives in object storage."""

    __tablename__ = "invoice_documents"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    invoice_id = Column(
        UUIDType, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True
    )

    file_name = Column(String(255), nullable=False)
    file_path = Column(String(500), nullable=False)
    file_type = Column(String(50), nullable=True)
    file_size = Column(Integer, nullable=True)
    document_type = Column(String(50), nullable=True)  # invoice_pdf, receipt, ...
    mime_type = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)

    uploaded_by = Column(String(255), nullable=False)
    is_deleted = Column(Boolean, nullable=False, default=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)
