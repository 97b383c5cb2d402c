from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from ledger.core.config import settings
from ledger.models.invoice import DiscountType, InvoiceStatus
from ledger.schemas.invoice_document import InvoiceDocumentResponse
from ledger.schemas.invoice_history import InvoiceHistoryResponse
from ledger.schemas.patch import PatchModel
from ledger.schemas.payment import PaymentResponse


class LineItemType(str, Enum):
    SERVICE = "service"
    MATERIAL = "material"
    LABOR = "labor"
    TRAVEL = "travel"
    OTHER = "other"


class InvoiceLineItemCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    item_type: LineItemType | None = None
    quantity: Decimal = Field(default=Decimal("1"), gt=0, max_digits=10, decimal_places=2)
    unit_price: Decimal = Field(ge=0, max_digits=15, decimal_places=2)
    billing_percentage: Decimal = Field(
        default=Decimal("100"), ge=0, max_digits=10, decimal_places=2
    )
    billed_total: Decimal | None = Field(default=None, ge=0, max_digits=15, decimal_places=2)
    sort_order: int = 0
    notes: str | None = None


class InvoiceLineItemUpdate(PatchModel):
    non_nullable = (
        "title",
        "quantity",
        "unit_price",
        "billing_percentage",
        "billed_total",
        "sort_order",
    )

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    item_type: LineItemType | None = None
    quantity: Decimal | None = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    unit_price: Decimal | None = Field(default=None, ge=0, max_digits=15, decimal_places=2)
    billing_percentage: Decimal | None = Field(
        default=None, ge=0, max_digits=10, decimal_places=2
    )
    billed_total: Decimal | None = Field(default=None, ge=0, max_digits=15, decimal_places=2)
    sort_order: int | None = None
    notes: str | None = None


class _DiscountFields(BaseModel):
    tax_rate: Decimal | None = Field(default=None, ge=0, le=1, max_digits=5, decimal_places=4)
    discount_type: DiscountType | None = None
    discount_value: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)

    @model_validator(mode="after")
    def _check_percentage(self) -> "_DiscountFields":
        if (
            self.discount_type == DiscountType.PERCENTAGE
            and self.discount_value is not None
            and self.discount_value > 100
        ):
            raise ValueError("Percentage discount cannot exceed 100")
        return self


class InvoiceCreate(_DiscountFields):
    # Owner references: organization is derived from job -> bid when possible
    organization_id: UUID | None = None
    job_id: UUID | None = None
    bid_id: UUID | None = None

    issue_date: date | None = None
    due_date: date | None = None
    payment_terms: str | None = Field(default=None, max_length=100)
    payment_terms_days: int | None = Field(default=None, gt=0)

    # Only stored as given when INVOICE_TRUST_CALLER_TOTALS is enabled
    line_item_sub_total: Decimal | None = Field(default=None, ge=0)
    tax_amount: Decimal | None = Field(default=None, ge=0)
    discount_amount: Decimal | None = Field(default=None, ge=0)
    total_amount: Decimal | None = None
    amount_paid: Decimal | None = Field(default=None, ge=0)
    balance_due: Decimal | None = Field(default=None, ge=0)

    notes: str | None = None
    terms_and_conditions: str | None = None
    internal_notes: str | None = None
    billing_address_line1: str | None = Field(default=None, max_length=255)
    billing_address_line2: str | None = Field(default=None, max_length=255)
    billing_city: str | None = Field(default=None, max_length=100)
    billing_state: str | None = Field(default=None, max_length=100)
    billing_zip_code: str | None = Field(default=None, max_length=20)
    billing_country: str | None = Field(default=None, max_length=100)

    line_items: list[InvoiceLineItemCreate] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_dates(self) -> "InvoiceCreate":
        if self.issue_date and self.due_date and self.due_date < self.issue_date:
            raise ValueError("due_date cannot be before issue_date")
        return self


class InvoiceUpdate(_DiscountFields, PatchModel):
    non_nullable = ("tax_rate", "status")

    issue_date: date | None = None
    due_date: date | None = None
    status: InvoiceStatus | None = None
    payment_terms: str | None = Field(default=None, max_length=100)
    payment_terms_days: int | None = Field(default=None, gt=0)
    notes: str | None = None
    terms_and_conditions: str | None = None
    internal_notes: str | None = None
    billing_address_line1: str | None = Field(default=None, max_length=255)
    billing_address_line2: str | None = Field(default=None, max_length=255)
    billing_city: str | None = Field(default=None, max_length=100)
    billing_state: str | None = Field(default=None, max_length=100)
    billing_zip_code: str | None = Field(default=None, max_length=20)
    billing_country: str | None = Field(default=None, max_length=100)


class MarkPaidRequest(BaseModel):
    paid_date: date | None = None
    notes: str | None = None


class StatusChangeReason(BaseModel):
    """Body of void/cancel requests."""

    reason: str = Field(min_length=1)
    notes: str | None = None


class BulkDeleteRequest(BaseModel):
    ids: list[UUID] = Field(min_length=1, max_length=settings.BULK_DELETE_MAX_IDS)


class BulkDeleteResponse(BaseModel):
    deleted: int
    skipped: int


class InvoiceCreateResult(BaseModel):
    invoice_id: UUID
    organization_id: UUID


class InvoiceLineItemResponse(BaseModel):
    id: UUID
    invoice_id: UUID
    title: str
    description: str | None
    item_type: str | None
    quantity: Decimal
    unit_price: Decimal
    billing_percentage: Decimal
    billed_total: Decimal
    sort_order: int
    notes: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class InvoiceResponse(BaseModel):
    id: UUID
    invoice_number: str
    organization_id: UUID
    job_id: UUID | None
    bid_id: UUID | None
    status: str
    issue_date: date | None
    due_date: date | None
    sent_date: datetime | None
    paid_date: datetime | None
    line_item_sub_total: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    discount_type: str | None
    discount_value: Decimal | None
    discount_amount: Decimal
    total_amount: Decimal
    amount_paid: Decimal
    balance_due: Decimal
    payment_terms: str | None
    payment_terms_days: int | None
    notes: str | None
    terms_and_conditions: str | None
    internal_notes: str | None
    billing_address_line1: str | None
    billing_address_line2: str | None
    billing_city: str | None
    billing_state: str | None
    billing_zip_code: str | None
    billing_country: str | None
    created_by: str
    is_deleted: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class InvoiceDetailResponse(InvoiceResponse):
    """Invoice composed with its children. Sections left out of the request stay ``None``."""

    line_items: list[InvoiceLineItemResponse] | None = None
    payments: list[PaymentResponse] | None = None
    documents: list[InvoiceDocumentResponse] | None = None
    history: list[InvoiceHistoryResponse] | None = None

    @classmethod
    def from_view(cls, view: dict[str, Any]) -> "InvoiceDetailResponse":
        data: dict[str, Any] = InvoiceResponse.model_validate(view["invoice"]).model_dump()
        sections: dict[str, type[BaseModel]] = {
            "line_items": InvoiceLineItemResponse,
            "payments": PaymentResponse,
            "documents": InvoiceDocumentResponse,
            "history": InvoiceHistoryResponse,
        }
        for key, schema in sections.items():
            rows = view.get(key)
            if rows is not None:
                data[key] = [schema.model_validate(row) for row in rows]
        return cls(**data)
