from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class InvoiceDocumentCreate(BaseModel):
    file_name: str = Field(min_length=1, max_length=255)
    file_path: str = Field(min_length=1, max_length=500)
    file_type: str | None = Field(default=None, max_length=50)
    file_size: int | None = Field(default=None, ge=0)
    document_type: str | None = Field(default=None, max_length=50)
    mime_type: str | None = Field(default=None, max_length=100)
    description: str | None = None


class InvoiceDocumentResponse(BaseModel):
    id: UUID
    invoice_id: UUID
    file_name: str
    file_path: str
    file_type: str | None
    file_size: int | None
    document_type: str | None
    mime_type: str | None
    description: str | None
    uploaded_by: str
    created_at: datetime

    model_config = {"from_attributes": True}
