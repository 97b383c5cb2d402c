"""Payment API endpoints across all invoices of an organization."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ledger.core.auth import get_current_organization
from ledger.core.database import get_db
from ledger.models.payment import PaymentMethod
from ledger.schemas.payment import PaymentResponse
from ledger.schemas.responses import SuccessResponse
from ledger.services.payment_service import PaymentService

router = APIRouter()


@router.get("/", response_model=SuccessResponse[list[PaymentResponse]], summary="List payments")
async def list_payments(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    invoice_id: UUID | None = None,
    payment_method: PaymentMethod | None = None,
    payment_date_from: date | None = None,
    payment_date_to: date | None = None,
    search: str | None = Query(default=None, max_length=100),
    order_by: str | None = None,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> SuccessResponse[list[PaymentResponse]]:
    """List payments with optional filters."""
    payments, total = PaymentService(db).list_payments(
        organization_id,
        skip=skip,
        limit=limit,
        order_by=order_by,
        invoice_id=invoice_id,
        payment_method=payment_method,
        payment_date_from=payment_date_from,
        payment_date_to=payment_date_to,
        search=search,
    )
    response.headers["X-Total-Count"] = str(total)
    return SuccessResponse(
        data=[PaymentResponse.model_validate(payment) for payment in payments],
        message="Payments retrieved",
    )


@router.get(
    "/{payment_id}",
    response_model=SuccessResponse[PaymentResponse],
    summary="Get payment",
    responses={404: {"description": "Payment not found"}},
)
async def get_payment(
    payment_id: UUID,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> SuccessResponse[PaymentResponse]:
    """Get a payment by ID."""
    payment = PaymentService(db).get_payment(payment_id, organization_id)
    return SuccessResponse(data=PaymentResponse.model_validate(payment), message="Payment retrieved")
