from datetime import date, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session

from ledger.core.sorting import apply_order_by
from ledger.models.invoice import Invoice, InvoiceStatus
from ledger.models.payment import Payment

SORTABLE_FIELDS = frozenset(
    {"created_at", "issue_date", "due_date", "total_amount", "balance_due", "invoice_number"}
)

# Statuses the daily overdue sweep is allowed to move to "overdue"
OVERDUE_CANDIDATE_STATUSES = (InvoiceStatus.DRAFT.value, InvoiceStatus.SENT.value)


class InvoiceRepository:
    def __init__(self, db: Session):
        self.db = db

    def _filtered_query(
        self,
        organization_id: UUID,
        status: InvoiceStatus | None = None,
        job_id: UUID | None = None,
        bid_id: UUID | None = None,
        issue_date_from: date | None = None,
        issue_date_to: date | None = None,
        due_date_from: date | None = None,
        due_date_to: date | None = None,
        search: str | None = None,
        include_deleted: bool = False,
    ) -> Query:  # type: ignore[type-arg]
        query = self.db.query(Invoice).filter(Invoice.organization_id == organization_id)

        if not include_deleted:
            query = query.filter(Invoice.is_deleted.is_(False))
        if status:
            query = query.filter(Invoice.status == status.value)
        if job_id:
            query = query.filter(Invoice.job_id == job_id)
        if bid_id:
            query = query.filter(Invoice.bid_id == bid_id)
        if issue_date_from:
            query = query.filter(Invoice.issue_date >= issue_date_from)
        if issue_date_to:
            query = query.filter(Invoice.issue_date <= issue_date_to)
        if due_date_from:
            query = query.filter(Invoice.due_date >= due_date_from)
        if due_date_to:
            query = query.filter(Invoice.due_date <= due_date_to)
        if search:
            term = f"%{search}%"
            query = query.filter(
                or_(Invoice.invoice_number.ilike(term), Invoice.notes.ilike(term))
            )
        return query

    def get_all(
        self,
        organization_id: UUID,
        skip: int = 0,
        limit: int = 100,
        order_by: str | None = None,
        **filters: Any,
    ) -> list[Invoice]:
        query = self._filtered_query(organization_id, **filters)
        query = apply_order_by(query, Invoice, order_by, allowed_fields=SORTABLE_FIELDS)
        return query.offset(skip).limit(limit).all()

    def count(self, organization_id: UUID, **filters: Any) -> int:
        return self._filtered_query(organization_id, **filters).count()

    def get_by_id(
        self,
        invoice_id: UUID,
        organization_id: UUID | None = None,
        include_deleted: bool = False,
    ) -> Invoice | None:
        query = self.db.query(Invoice).filter(Invoice.id == invoice_id)
        if organization_id is not None:
            query = query.filter(Invoice.organization_id == organization_id)
        if not include_deleted:
            query = query.filter(Invoice.is_deleted.is_(False))
        return query.first()

    def get_max_number(self, organization_id: UUID, prefix: str) -> str | None:
        """Highest invoice number starting with ``prefix`` (soft-deleted rows included)."""
        return (
            self.db.query(func.max(Invoice.invoice_number))
            .filter(
                Invoice.organization_id == organization_id,
                Invoice.invoice_number.like(f"{prefix}%"),
            )
            .scalar()
        )

    def create(self, **values: Any) -> Invoice:
        invoice = Invoice(**values)
        self.db.add(invoice)
        self.db.flush()
        return invoice

    def update(self, invoice: Invoice, values: dict[str, Any]) -> Invoice:
        for key, value in values.items():
            setattr(invoice, key, value)
        self.db.flush()
        return invoice

    def soft_delete(self, invoice: Invoice, deleted_by: str, deleted_at: datetime) -> Invoice:
        invoice.is_deleted = True  # type: ignore[assignment]
        invoice.deleted_at = deleted_at  # type: ignore[assignment]
        invoice.deleted_by = deleted_by  # type: ignore[assignment]
        self.db.flush()
        return invoice

    def get_stale_invoice_ids(self, limit: int = 500) -> list[UUID]:
        """Invoices with payments written after the invoice totals were last saved.

        A payment commit followed by a failed recalculation leaves exactly this
        shape behind: the payment's ``updated_at`` is newer than the invoice's.
        """
        latest_payment = (
            self.db.query(
                Payment.invoice_id.label("invoice_id"),
                func.max(Payment.updated_at).label("last_payment_at"),
            )
            .group_by(Payment.invoice_id)
            .subquery()
        )
        rows = (
            self.db.query(Invoice.id)
            .join(latest_payment, latest_payment.c.invoice_id == Invoice.id)
            .filter(
                Invoice.is_deleted.is_(False),
                latest_payment.c.last_payment_at > Invoice.updated_at,
            )
            .order_by(Invoice.updated_at.asc())
            .limit(limit)
            .all()
        )
        return [row[0] for row in rows]

    def get_overdue_candidate_ids(self, today: date, limit: int = 500) -> list[UUID]:
        """Unpaid invoices past their due date whose status has not caught up yet."""
        rows = (
            self.db.query(Invoice.id)
            .filter(
                Invoice.is_deleted.is_(False),
                Invoice.status.in_(OVERDUE_CANDIDATE_STATUSES),
                Invoice.due_date.isnot(None),
                Invoice.due_date < today,
                Invoice.balance_due > 0,
            )
            .order_by(Invoice.due_date.asc())
            .limit(limit)
            .all()
        )
        return [row[0] for row in rows]
