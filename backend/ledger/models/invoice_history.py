"""InvoiceHistory model - append-only trail of state-changing actions on invoices."""

from sqlalchemy import Column, DateTime, ForeignKey, String, Text

from ledger.core.database import Base
from ledger.models.shared import UUIDType, generate_uuid, utc_now


class InvoiceHistory(Base):
    """One immutable audit entry. Rows are only ever inserted."""

    __tablename__ = "invoice_history"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    invoice_id = Column(
        UUIDType, ForeignKey("invoices.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    organization_id = Column(UUIDType, nullable=False, index=True)
    action = Column(String(100), nullable=False, index=True)
    old_value = Column(Text, nullable=True)
    new_value = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    performed_by = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now, index=True)
