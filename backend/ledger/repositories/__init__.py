from ledger.repositories.id_counter_repository import IdCounterRepository
from ledger.repositories.invoice_document_repository import InvoiceDocumentRepository
from ledger.repositories.invoice_history_repository import InvoiceHistoryRepository
from ledger.repositories.invoice_line_item_repository import InvoiceLineItemRepository
from ledger.repositories.invoice_repository import InvoiceRepository
from ledger.repositories.job_repository import JobRepository
from ledger.repositories.payment_repository import PaymentRepository

__all__ = [
    "IdCounterRepository",
    "InvoiceDocumentRepository",
    "InvoiceHistoryRepository",
    "InvoiceLineItemRepository",
    "InvoiceRepository",
    "JobRepository",
    "PaymentRepository",
]
