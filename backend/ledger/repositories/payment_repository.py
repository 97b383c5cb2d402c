"""Payment repository for data access."""

from datetime import date, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from ledger.core.sorting import apply_order_by
from ledger.models.payment import Payment, PaymentMethod

SORTABLE_FIELDS = frozenset({"created_at", "payment_date", "amount", "payment_number"})


class PaymentRepository:
    """Repository for Payment model."""

    def __init__(self, db: Session):
        self.db = db

    def _filtered_query(
        self,
        organization_id: UUID,
        invoice_id: UUID | None = None,
        payment_method: PaymentMethod | None = None,
        payment_date_from: date | None = None,
        payment_date_to: date | None = None,
        search: str | None = None,
        include_deleted: bool = False,
    ) -> Query:  # type: ignore[type-arg]
        query = self.db.query(Payment).filter(Payment.organization_id == organization_id)

        if not include_deleted:
            query = query.filter(Payment.is_deleted.is_(False))
        if invoice_id:
            query = query.filter(Payment.invoice_id == invoice_id)
        if payment_method:
            query = query.filter(Payment.payment_method == payment_method.value)
        if payment_date_from:
            query = query.filter(Payment.payment_date >= payment_date_from)
        if payment_date_to:
            query = query.filter(Payment.payment_date <= payment_date_to)
        if search:
            term = f"%{search}%"
            query = query.filter(
                Payment.payment_number.ilike(term) | Payment.reference_number.ilike(term)
            )
        return query

    def get_all(
        self,
        organization_id: UUID,
        skip: int = 0,
        limit: int = 100,
        order_by: str | None = None,
        **filters: Any,
    ) -> list[Payment]:
        """Get payments with optional filters."""
        query = self._filtered_query(organization_id, **filters)
        query = apply_order_by(query, Payment, order_by, allowed_fields=SORTABLE_FIELDS)
        return query.offset(skip).limit(limit).all()

    def count(self, organization_id: UUID, **filters: Any) -> int:
        return self._filtered_query(organization_id, **filters).count()

    def get_by_id(
        self,
        payment_id: UUID,
        organization_id: UUID | None = None,
        invoice_id: UUID | None = None,
    ) -> Payment | None:
        """Get a non-deleted payment by ID."""
        query = self.db.query(Payment).filter(
            Payment.id == payment_id, Payment.is_deleted.is_(False)
        )
        if organization_id is not None:
            query = query.filter(Payment.organization_id == organization_id)
        if invoice_id is not None:
            query = query.filter(Payment.invoice_id == invoice_id)
        return query.first()

    def get_by_invoice_id(self, invoice_id: UUID) -> list[Payment]:
        """Non-deleted payments of an invoice, newest payment date first."""
        return (
            self.db.query(Payment)
            .filter(Payment.invoice_id == invoice_id, Payment.is_deleted.is_(False))
            .order_by(Payment.payment_date.desc(), Payment.created_at.desc())
            .all()
        )

    def get_max_number(self, organization_id: UUID, prefix: str) -> str | None:
        """Highest payment number starting with ``prefix`` (soft-deleted rows included)."""
        return (
            self.db.query(func.max(Payment.payment_number))
            .filter(
                Payment.organization_id == organization_id,
                Payment.payment_number.like(f"{prefix}%"),
            )
            .scalar()
        )

    def create(self, **values: Any) -> Payment:
        """Create a new payment."""
        payment = Payment(**values)
        self.db.add(payment)
        self.db.flush()
        return payment

    def update(self, payment: Payment, values: dict[str, Any]) -> Payment:
        for key, value in values.items():
            setattr(payment, key, value)
        self.db.flush()
        return payment

    def soft_delete(self, payment: Payment, deleted_at: datetime) -> Payment:
        payment.is_deleted = True  # type: ignore[assignment]
        payment.deleted_at = deleted_at  # type: ignore[assignment]
        self.db.flush()
        return payment
