from ledger.schemas.invoice import (
    BulkDeleteRequest,
    BulkDeleteResponse,
    InvoiceCreate,
    InvoiceCreateResult,
    InvoiceDetailResponse,
    InvoiceLineItemCreate,
    InvoiceLineItemResponse,
    InvoiceLineItemUpdate,
    InvoiceResponse,
    InvoiceUpdate,
    MarkPaidRequest,
    StatusChangeReason,
)
from ledger.schemas.invoice_document import InvoiceDocumentCreate, InvoiceDocumentResponse
from ledger.schemas.invoice_history import InvoiceHistoryResponse
from ledger.schemas.patch import PatchModel
from ledger.schemas.payment import PaymentCreate, PaymentResponse, PaymentUpdate
from ledger.schemas.responses import ErrorDetail, ErrorResponse, SuccessResponse

__all__ = [
    "BulkDeleteRequest",
    "BulkDeleteResponse",
    "ErrorDetail",
    "ErrorResponse",
    "InvoiceCreate",
    "InvoiceCreateResult",
    "InvoiceDetailResponse",
    "InvoiceDocumentCreate",
    "InvoiceDocumentResponse",
    "InvoiceHistoryResponse",
    "InvoiceLineItemCreate",
    "InvoiceLineItemResponse",
    "InvoiceLineItemUpdate",
    "InvoiceResponse",
    "InvoiceUpdate",
    "MarkPaidRequest",
    "PatchModel",
    "PaymentCreate",
    "PaymentResponse",
    "PaymentUpdate",
    "StatusChangeReason",
    "SuccessResponse",
]
