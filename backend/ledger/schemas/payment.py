"""Payment schemas."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ledger.models.payment import PaymentMethod
from ledger.schemas.patch import PatchModel


class PaymentCreate(BaseModel):
    """Schema for recording a payment against an invoice."""

    organization_id: UUID | None = None
    amount: Decimal = Field(gt=0, max_digits=15, decimal_places=2)
    payment_date: date
    payment_method: PaymentMethod = PaymentMethod.OTHER
    reference_number: str | None = Field(default=None, max_length=255)
    notes: str | None = None


class PaymentUpdate(PatchModel):
    """Schema for updating a payment."""

    non_nullable = ("amount", "payment_date", "payment_method")

    amount: Decimal | None = Field(default=None, gt=0, max_digits=15, decimal_places=2)
    payment_date: date | None = None
    payment_method: PaymentMethod | None = None
    reference_number: str | None = Field(default=None, max_length=255)
    notes: str | None = None


class PaymentResponse(BaseModel):
    """Schema for payment response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    payment_number: str
    organization_id: UUID
    invoice_id: UUID
    amount: Decimal
    payment_date: date
    payment_method: str
    reference_number: str | None = None
    notes: str | None = None
    created_by: str
    created_at: datetime
    updated_at: datetime


class InvoiceBalance(BaseModel):
    amount_paid: Decimal
    balance_due: Decimal
    status: str


class PaymentWithInvoiceResponse(BaseModel):
    """Payment plus the invoice totals after recalculation."""

    payment: PaymentResponse
    invoice: InvoiceBalance | None = None
