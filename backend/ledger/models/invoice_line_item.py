from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text

from ledger.core.database import Base
from ledger.models.shared import UUIDType, generate_uuid, utc_now


class InvoiceLineItem(Base):
    """A billable row on an invoice. Soft-deleted rows never count towards totals."""

    __tablename__ = "invoice_line_items"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    invoice_id = Column(
        UUIDType, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True
    )

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    item_type = Column(String(50), nullable=True)  # service, material, labor, travel, other
    quantity = Column(Numeric(10, 2), nullable=False, default=1)
    unit_price = Column(Numeric(15, 2), nullable=False)
    billing_percentage = Column(Numeric(10, 2), nullable=False, default=100)
    billed_total = Column(Numeric(15, 2), nullable=False, default=0)
    sort_order = Column(Integer, nullable=False, default=0)
    notes = Column(Text, nullable=True)

    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)
