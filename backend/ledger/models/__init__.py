from ledger.models.bid import Bid
from ledger.models.id_counter import IdCounter
from ledger.models.invoice import DiscountType, Invoice, InvoiceStatus
from ledger.models.invoice_document import InvoiceDocument
from ledger.models.invoice_history import InvoiceHistory
from ledger.models.invoice_line_item import InvoiceLineItem
from ledger.models.job import Job
from ledger.models.organization import Organization
from ledger.models.payment import Payment, PaymentMethod

__all__ = [
    "Bid",
    "DiscountType",
    "IdCounter",
    "Invoice",
    "InvoiceDocument",
    "InvoiceHistory",
    "InvoiceLineItem",
    "InvoiceStatus",
    "Job",
    "Organization",
    "Payment",
    "PaymentMethod",
]
