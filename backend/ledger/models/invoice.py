from enum import Enum

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)

from ledger.core.database import Base
from ledger.models.shared import UUIDType, generate_uuid, utc_now


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"
    VOID = "void"
    CANCELLED = "cancelled"


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class Invoice(Base):
    __tablename__ = "invoices"
    __table_args__ = (
        UniqueConstraint("organization_id", "invoice_number", name="uq_invoices_org_number"),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    invoice_number = Column(String(50), nullable=False, index=True)
    organization_id = Column(
        UUIDType, ForeignKey("organizations.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    job_id = Column(UUIDType, ForeignKey("jobs.id", ondelete="RESTRICT"), nullable=True, index=True)
    bid_id = Column(UUIDType, ForeignKey("bids.id", ondelete="RESTRICT"), nullable=True, index=True)
    status = Column(String(20), nullable=False, default=InvoiceStatus.DRAFT.value, index=True)

    # Dates
    issue_date = Column(Date, nullable=True)
    due_date = Column(Date, nullable=True, index=True)
    sent_date = Column(DateTime(timezone=True), nullable=True)
    paid_date = Column(DateTime(timezone=True), nullable=True)

    # Amounts
    line_item_sub_total = Column(Numeric(15, 2), nullable=False, default=0)
    tax_rate = Column(Numeric(5, 4), nullable=False, default=0)  # e.g. 0.0825 for 8.25%
    tax_amount = Column(Numeric(15, 2), nullable=False, default=0)
    discount_type = Column(String(20), nullable=True)
    discount_value = Column(Numeric(10, 2), nullable=True)
    discount_amount = Column(Numeric(15, 2), nullable=False, default=0)
    total_amount = Column(Numeric(15, 2), nullable=False, default=0)
    amount_paid = Column(Numeric(15, 2), nullable=False, default=0)
    balance_due = Column(Numeric(15, 2), nullable=False, default=0)

    # Terms
    payment_terms = Column(String(100), nullable=True)  # "Net 30", "Due on Receipt", ...
    payment_terms_days = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)
    terms_and_conditions = Column(Text, nullable=True)
    internal_notes = Column(Text, nullable=True)

    # Billing address
    billing_address_line1 = Column(String(255), nullable=True)
    billing_address_line2 = Column(String(255), nullable=True)
    billing_city = Column(String(100), nullable=True)
    billing_state = Column(String(100), nullable=True)
    billing_zip_code = Column(String(20), nullable=True)
    billing_country = Column(String(100), nullable=True)

    created_by = Column(String(255), nullable=False)
    is_deleted = Column(Boolean, nullable=False, default=False, index=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    deleted_by = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)
