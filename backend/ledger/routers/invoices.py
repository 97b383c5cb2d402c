from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ledger.core.auth import get_current_actor, get_current_organization, get_optional_organization
from ledger.core.database import get_db
from ledger.core.errors import NotFoundError
from ledger.models.invoice import InvoiceStatus
from ledger.repositories.invoice_repository import InvoiceRepository
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
from ledger.schemas.payment import (
    InvoiceBalance,
    PaymentCreate,
    PaymentResponse,
    PaymentUpdate,
    PaymentWithInvoiceResponse,
)
from ledger.schemas.responses import SuccessResponse
from ledger.services.invoice_service import InvoiceService
from ledger.services.line_item_service import LineItemService
from ledger.services.payment_service import PaymentService

router = APIRouter()


def _balance(db: Session, invoice_id: UUID, organization_id: UUID) -> InvoiceBalance | None:
    invoice = InvoiceRepository(db).get_by_id(invoice_id, organization_id)
    if not invoice:
        return None
    return InvoiceBalance(
        amount_paid=invoice.amount_paid,  # type: ignore[arg-type]
        balance_due=invoice.balance_due,  # type: ignore[arg-type]
        status=str(invoice.status),
    )


@router.get(
    "/",
    response_model=SuccessResponse[list[InvoiceResponse]],
    summary="List invoices",
)
async def list_invoices(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    status: InvoiceStatus | None = None,
    job_id: UUID | None = None,
    bid_id: UUID | None = None,
    issue_date_from: date | None = None,
    issue_date_to: date | None = None,
    due_date_from: date | None = None,
    due_date_to: date | None = None,
    search: str | None = Query(default=None, max_length=100),
    include_deleted: bool = False,
    order_by: str | None = None,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> SuccessResponse[list[InvoiceResponse]]:
    """List invoices with optional filters."""
    invoices, total = InvoiceService(db).list_invoices(
        organization_id,
        skip=skip,
        limit=limit,
        order_by=order_by,
        status=status,
        job_id=job_id,
        bid_id=bid_id,
        issue_date_from=issue_date_from,
        issue_date_to=issue_date_to,
        due_date_from=due_date_from,
        due_date_to=due_date_to,
        search=search,
        include_deleted=include_deleted,
    )
    response.headers["X-Total-Count"] = str(total)
    return SuccessResponse(
        data=[InvoiceResponse.model_validate(invoice) for invoice in invoices],
        message="Invoices retrieved",
    )


@router.post(
    "/",
    response_model=SuccessResponse[InvoiceCreateResult],
    status_code=201,
    summary="Create invoice",
    responses={
        400: {"description": "Missing owner reference or validation error"},
        404: {"description": "Job or bid not found"},
        409: {"description": "Organization mismatch or duplicate invoice number"},
    },
)
async def create_invoice(
    data: InvoiceCreate,
    db: Session = Depends(get_db),
    organization_id: UUID | None = Depends(get_optional_organization),
    actor_id: str = Depends(get_current_actor),
) -> SuccessResponse[InvoiceCreateResult]:
    """Create a draft invoice. The organization is derived from the job or bid."""
    result = InvoiceService(db).create_invoice(data, actor_id, organization_id=organization_id)
    return SuccessResponse(data=result, message="Invoice created")


@router.post(
    "/bulk_delete",
    response_model=SuccessResponse[BulkDeleteResponse],
    summary="Bulk delete invoices",
)
async def bulk_delete_invoices(
    data: BulkDeleteRequest,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
    actor_id: str = Depends(get_current_actor),
) -> SuccessResponse[BulkDeleteResponse]:
    result = InvoiceService(db).bulk_delete(data.ids, organization_id, actor_id)
    return SuccessResponse(data=result, message=f"Deleted {result.deleted} invoices")


@router.get(
    "/{invoice_id}",
    response_model=SuccessResponse[InvoiceDetailResponse],
    summary="Get invoice",
    responses={404: {"description": "Invoice not found"}},
)
async def get_invoice(
    invoice_id: UUID,
    include_line_items: bool = True,
    include_payments: bool = True,
    include_documents: bool = True,
    include_history: bool = False,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> SuccessResponse[InvoiceDetailResponse]:
    """Get an invoice with its line items, payments and documents."""
    view = InvoiceService(db).get_invoice(
        invoice_id,
        organization_id,
        include_line_items=include_line_items,
        include_payments=include_payments,
        include_documents=include_documents,
        include_history=include_history,
    )
    if view is None:
        raise NotFoundError(f"Invoice {invoice_id} not found")
    return SuccessResponse(data=InvoiceDetailResponse.from_view(view), message="Invoice retrieved")


@router.put(
    "/{invoice_id}",
    response_model=SuccessResponse[InvoiceResponse],
    summary="Update invoice",
    responses={
        404: {"description": "Invoice not found"},
        409: {"description": "Status transition not allowed"},
    },
)
async def update_invoice(
    invoice_id: UUID,
    data: InvoiceUpdate,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
    actor_id: str = Depends(get_current_actor),
) -> SuccessResponse[InvoiceResponse]:
    invoice = InvoiceService(db).update_invoice(invoice_id, organization_id, data, actor_id)
    return SuccessResponse(data=InvoiceResponse.model_validate(invoice), message="Invoice updated")


@router.delete(
    "/{invoice_id}",
    response_model=SuccessResponse[None],
    summary="Delete invoice",
    responses={404: {"description": "Invoice not found"}},
)
async def delete_invoice(
    invoice_id: UUID,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
    actor_id: str = Depends(get_current_actor),
) -> SuccessResponse[None]:
    """Soft delete an invoice together with its line items and documents."""
    InvoiceService(db).delete_invoice(invoice_id, organization_id, actor_id)
    return SuccessResponse(data=None, message="Invoice deleted")


@router.post(
    "/{invoice_id}/send",
    response_model=SuccessResponse[InvoiceResponse],
    summary="Mark invoice as sent",
)
async def send_invoice(
    invoice_id: UUID,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
    actor_id: str = Depends(get_current_actor),
) -> SuccessResponse[InvoiceResponse]:
    invoice = InvoiceService(db).mark_sent(invoice_id, organization_id, actor_id)
    return SuccessResponse(data=InvoiceResponse.model_validate(invoice), message="Invoice sent")


@router.post(
    "/{invoice_id}/mark_paid",
    response_model=SuccessResponse[InvoiceResponse],
    summary="Mark invoice as paid",
)
async def mark_invoice_paid(
    invoice_id: UUID,
    data: MarkPaidRequest | None = None,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
    actor_id: str = Depends(get_current_actor),
) -> SuccessResponse[InvoiceResponse]:
    data = data or MarkPaidRequest()
    invoice = InvoiceService(db).mark_paid(
        invoice_id, organization_id, actor_id, paid_date=data.paid_date, notes=data.notes
    )
    return SuccessResponse(
        data=InvoiceResponse.model_validate(invoice), message="Invoice marked as paid"
    )


@router.post(
    "/{invoice_id}/void",
    response_model=SuccessResponse[InvoiceResponse],
    summary="Void invoice",
)
async def void_invoice(
    invoice_id: UUID,
    data: StatusChangeReason,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
    actor_id: str = Depends(get_current_actor),
) -> SuccessResponse[InvoiceResponse]:
    invoice = InvoiceService(db).void_invoice(
        invoice_id, organization_id, actor_id, reason=data.reason, notes=data.notes
    )
    return SuccessResponse(data=InvoiceResponse.model_validate(invoice), message="Invoice voided")


@router.post(
    "/{invoice_id}/cancel",
    response_model=SuccessResponse[InvoiceResponse],
    summary="Cancel invoice",
)
async def cancel_invoice(
    invoice_id: UUID,
    data: StatusChangeReason,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
    actor_id: str = Depends(get_current_actor),
) -> SuccessResponse[InvoiceResponse]:
    invoice = InvoiceService(db).cancel_invoice(
        invoice_id, organization_id, actor_id, reason=data.reason, notes=data.notes
    )
    return SuccessResponse(
        data=InvoiceResponse.model_validate(invoice), message="Invoice cancelled"
    )


@router.post(
    "/{invoice_id}/recalculate",
    response_model=SuccessResponse[InvoiceResponse],
    summary="Recalculate invoice totals",
)
async def recalculate_invoice(
    invoice_id: UUID,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
    actor_id: str = Depends(get_current_actor),
) -> SuccessResponse[InvoiceResponse]:
    invoice = InvoiceService(db).recalculate(invoice_id, organization_id, actor_id)
    return SuccessResponse(
        data=InvoiceResponse.model_validate(invoice), message="Invoice recalculated"
    )


@router.get(
    "/{invoice_id}/history",
    response_model=SuccessResponse[list[InvoiceHistoryResponse]],
    summary="Invoice history",
)
async def list_invoice_history(
    invoice_id: UUID,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    action: str | None = None,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> SuccessResponse[list[InvoiceHistoryResponse]]:
    """History entries of an invoice, newest first."""
    service = InvoiceService(db)
    service.get_invoice_or_404(invoice_id, organization_id)
    entries = service.history.list_for_invoice(invoice_id, skip=skip, limit=limit, action=action)
    return SuccessResponse(
        data=[InvoiceHistoryResponse.model_validate(entry) for entry in entries],
        message="History retrieved",
    )


@router.get(
    "/{invoice_id}/line_items",
    response_model=SuccessResponse[list[InvoiceLineItemResponse]],
    summary="List line items",
)
async def list_line_items(
    invoice_id: UUID,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> SuccessResponse[list[InvoiceLineItemResponse]]:
    line_items = LineItemService(db).list_line_items(invoice_id, organization_id)
    return SuccessResponse(
        data=[InvoiceLineItemResponse.model_validate(item) for item in line_items],
        message="Line items retrieved",
    )


@router.post(
    "/{invoice_id}/line_items",
    response_model=SuccessResponse[InvoiceLineItemResponse],
    status_code=201,
    summary="Add line item",
)
async def add_line_item(
    invoice_id: UUID,
    data: InvoiceLineItemCreate,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
    actor_id: str = Depends(get_current_actor),
) -> SuccessResponse[InvoiceLineItemResponse]:
    line_item = LineItemService(db).add_line_item(invoice_id, organization_id, data, actor_id)
    return SuccessResponse(
        data=InvoiceLineItemResponse.model_validate(line_item), message="Line item added"
    )


@router.get(
    "/{invoice_id}/line_items/{line_item_id}",
    response_model=SuccessResponse[InvoiceLineItemResponse],
    summary="Get line item",
)
async def get_line_item(
    invoice_id: UUID,
    line_item_id: UUID,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> SuccessResponse[InvoiceLineItemResponse]:
    line_item = LineItemService(db).get_line_item(invoice_id, organization_id, line_item_id)
    return SuccessResponse(
        data=InvoiceLineItemResponse.model_validate(line_item), message="Line item retrieved"
    )


@router.put(
    "/{invoice_id}/line_items/{line_item_id}",
    response_model=SuccessResponse[InvoiceLineItemResponse],
    summary="Update line item",
)
async def update_line_item(
    invoice_id: UUID,
    line_item_id: UUID,
    data: InvoiceLineItemUpdate,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
    actor_id: str = Depends(get_current_actor),
) -> SuccessResponse[InvoiceLineItemResponse]:
    line_item = LineItemService(db).update_line_item(
        invoice_id, organization_id, line_item_id, data, actor_id
    )
    return SuccessResponse(
        data=InvoiceLineItemResponse.model_validate(line_item), message="Line item updated"
    )


@router.delete(
    "/{invoice_id}/line_items/{line_item_id}",
    response_model=SuccessResponse[None],
    summary="Delete line item",
)
async def delete_line_item(
    invoice_id: UUID,
    line_item_id: UUID,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
    actor_id: str = Depends(get_current_actor),
) -> SuccessResponse[None]:
    LineItemService(db).delete_line_item(invoice_id, organization_id, line_item_id, actor_id)
    return SuccessResponse(data=None, message="Line item deleted")


@router.get(
    "/{invoice_id}/payments",
    response_model=SuccessResponse[list[PaymentResponse]],
    summary="List invoice payments",
)
async def list_invoice_payments(
    invoice_id: UUID,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> SuccessResponse[list[PaymentResponse]]:
    payments = PaymentService(db).list_invoice_payments(invoice_id, organization_id)
    return SuccessResponse(
        data=[PaymentResponse.model_validate(payment) for payment in payments],
        message="Payments retrieved",
    )


@router.post(
    "/{invoice_id}/payments",
    response_model=SuccessResponse[PaymentWithInvoiceResponse],
    status_code=201,
    summary="Record payment",
    responses={409: {"description": "Organization mismatch or duplicate payment number"}},
)
async def create_payment(
    invoice_id: UUID,
    data: PaymentCreate,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
    actor_id: str = Depends(get_current_actor),
) -> SuccessResponse[PaymentWithInvoiceResponse]:
    """Record a payment. The response carries the invoice balance after recalculation."""
    payment = PaymentService(db).create_payment(invoice_id, organization_id, data, actor_id)
    return SuccessResponse(
        data=PaymentWithInvoiceResponse(
            payment=PaymentResponse.model_validate(payment),
            invoice=_balance(db, invoice_id, organization_id),
        ),
        message="Payment recorded",
    )


@router.get(
    "/{invoice_id}/payments/{payment_id}",
    response_model=SuccessResponse[PaymentResponse],
    summary="Get invoice payment",
)
async def get_invoice_payment(
    invoice_id: UUID,
    payment_id: UUID,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> SuccessResponse[PaymentResponse]:
    payment = PaymentService(db).get_invoice_payment(invoice_id, organization_id, payment_id)
    return SuccessResponse(data=PaymentResponse.model_validate(payment), message="Payment retrieved")


@router.put(
    "/{invoice_id}/payments/{payment_id}",
    response_model=SuccessResponse[PaymentWithInvoiceResponse],
    summary="Update payment",
)
async def update_payment(
    invoice_id: UUID,
    payment_id: UUID,
    data: PaymentUpdate,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
    actor_id: str = Depends(get_current_actor),
) -> SuccessResponse[PaymentWithInvoiceResponse]:
    payment = PaymentService(db).update_payment(
        invoice_id, organization_id, payment_id, data, actor_id
    )
    return SuccessResponse(
        data=PaymentWithInvoiceResponse(
            payment=PaymentResponse.model_validate(payment),
            invoice=_balance(db, invoice_id, organization_id),
        ),
        message="Payment updated",
    )


@router.delete(
    "/{invoice_id}/payments/{payment_id}",
    response_model=SuccessResponse[InvoiceBalance | None],
    summary="Delete payment",
)
async def delete_payment(
    invoice_id: UUID,
    payment_id: UUID,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
    actor_id: str = Depends(get_current_actor),
) -> SuccessResponse[InvoiceBalance | None]:
    PaymentService(db).delete_payment(invoice_id, organization_id, payment_id, actor_id)
    return SuccessResponse(
        data=_balance(db, invoice_id, organization_id), message="Payment deleted"
    )


@router.post(
    "/{invoice_id}/documents",
    response_model=SuccessResponse[InvoiceDocumentResponse],
    status_code=201,
    summary="Attach document",
)
async def add_document(
    invoice_id: UUID,
    data: InvoiceDocumentCreate,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
    actor_id: str = Depends(get_current_actor),
) -> SuccessResponse[InvoiceDocumentResponse]:
    """Attach metadata of a file already uploaded to object storage."""
    document = InvoiceService(db).add_document(invoice_id, organization_id, data, actor_id)
    return SuccessResponse(
        data=InvoiceDocumentResponse.model_validate(document), message="Document attached"
    )


@router.delete(
    "/{invoice_id}/documents/{document_id}",
    response_model=SuccessResponse[None],
    summary="Remove document",
)
async def delete_document(
    invoice_id: UUID,
    document_id: UUID,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
    actor_id: str = Depends(get_current_actor),
) -> SuccessResponse[None]:
    InvoiceService(db).delete_document(invoice_id, organization_id, document_id, actor_id)
    return SuccessResponse(data=None, message="Document removed")
