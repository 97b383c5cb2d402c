"""Pydantic schemas for InvoiceHistory."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class InvoiceHistoryResponse(BaseModel):
    id: UUID
    invoice_id: UUID
    organization_id: UUID
    action: str
    old_value: str | None
    new_value: str | None
    description: str | None
    performed_by: str
    created_at: datetime

    model_config = {"from_attributes": True}
