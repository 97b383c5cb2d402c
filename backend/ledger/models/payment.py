"""Payment model for recording amounts applied against invoices."""

from enum import Enum

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)

from ledger.core.database import Base
from ledger.models.shared import UUIDType, generate_uuid, utc_now


class PaymentMethod(str, Enum):
    """Supported payment methods."""

    CASH = "cash"
    CHECK = "check"
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    ACH = "ach"
    WIRE_TRANSFER = "wire_transfer"
    PAYPAL = "paypal"
    STRIPE = "stripe"
    OTHER = "other"


class Payment(Base):
    """Payment model - every non-deleted payment counts as settled."""

    __tablename__ = "payments"
    __table_args__ = (
        UniqueConstraint("organization_id", "payment_number", name="uq_payments_org_number"),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    payment_number = Column(String(50), nullable=False, index=True)
    organization_id = Column(
        UUIDType, ForeignKey("organizations.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    invoice_id = Column(
        UUIDType, ForeignKey("invoices.id", ondelete="RESTRICT"), nullable=False, index=True
    )

    # Payment details
    amount = Column(Numeric(15, 2), nullable=False)
    payment_date = Column(Date, nullable=False, index=True)
    payment_method = Column(String(30), nullable=False, default=PaymentMethod.OTHER.value)
    reference_number = Column(String(255), nullable=True)  # Check number, transaction ID, ...
    notes = Column(Text, nullable=True)

    created_by = Column(String(255), nullable=False)
    is_deleted = Column(Boolean, nullable=False, default=False, index=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)
