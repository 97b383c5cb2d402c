"""Per-organization document numbering for invoices and payments."""

import logging
import re
from datetime import date
from enum import Enum
from uuid import UUID

from sqlalchemy.orm import Session

from ledger.core.config import settings
from ledger.core.errors import ValidationFailedError
from ledger.repositories.id_counter_repository import IdCounterRepository
from ledger.repositories.invoice_repository import InvoiceRepository
from ledger.repositories.payment_repository import PaymentRepository

logger = logging.getLogger(__name__)

DOCUMENT_NUMBER_PATTERN = re.compile(r"^(?P<prefix>[A-Z]{3})-(?P<year>\d{4})-(?P<sequence>\d{5})$")


class DocumentCounter(str, Enum):
    INVOICE_NUMBER = "invoice_number"
    PAYMENT_NUMBER = "payment_number"


def counter_prefix(counter: DocumentCounter) -> str:
    if counter == DocumentCounter.PAYMENT_NUMBER:
        return settings.PAYMENT_NUMBER_PREFIX
    return settings.INVOICE_NUMBER_PREFIX


def format_document_number(prefix: str, year: int, sequence: int) -> str:
    """Format a document number, e.g. ``INV-2025-00042``."""
    return f"{prefix}-{year}-{sequence:05d}"


def parse_document_number(number: str) -> tuple[str, int, int]:
    """Split a document number into ``(prefix, year, sequence)``.

    Raises:
        ValidationFailedError: If the number does not have the
            ``PREFIX-YYYY-NNNNN`` shape.
    """
    match = DOCUMENT_NUMBER_PATTERN.match(number)
    if not match:
        raise ValidationFailedError(f"Malformed document number: {number!r}")
    return match.group("prefix"), int(match.group("year")), int(match.group("sequence"))


class SequenceService:
    """Hands out monotonically increasing numbers per (organization, counter)."""

    def __init__(self, db: Session):
        self.db = db
        self.counter_repo = IdCounterRepository(db)
        self.invoice_repo = InvoiceRepository(db)
        self.payment_repo = PaymentRepository(db)

    def uses_atomic_counter(self) -> bool:
        return settings.SEQUENCE_STRATEGY != "scan" and self.counter_repo.supports_atomic_increment()

    def next_sequence(
        self,
        organization_id: UUID,
        counter: DocumentCounter,
        today: date | None = None,
    ) -> int:
        """Return the next sequence value for the organization's counter.

        The atomic path is a single upsert on ``id_counters``; the caller's
        transaction holds the counter row until it commits. The scan path is
        used when the database cannot do that.
        """
        if self.uses_atomic_counter():
            return self.counter_repo.increment(organization_id, counter.value)
        return self._scan_next_sequence(organization_id, counter, today or date.today())

    def next_document_number(
        self,
        organization_id: UUID,
        counter: DocumentCounter,
        today: date | None = None,
    ) -> str:
        today = today or date.today()
        sequence = self.next_sequence(organization_id, counter, today)
        return format_document_number(counter_prefix(counter), today.year, sequence)

    def _scan_next_sequence(
        self, organization_id: UUID, counter: DocumentCounter, today: date
    ) -> int:
        # Not safe under concurrency: two callers can read the same maximum.
        logger.warning(
            "Using scan fallback for %s numbering of organization %s",
            counter.value,
            organization_id,
        )
        prefix = f"{counter_prefix(counter)}-{today.year}-"
        if counter == DocumentCounter.PAYMENT_NUMBER:
            latest = self.payment_repo.get_max_number(organization_id, prefix)
        else:
            latest = self.invoice_repo.get_max_number(organization_id, prefix)
        if not latest:
            return 1
        try:
            _, _, sequence = parse_document_number(latest)
        except ValidationFailedError:
            logger.warning("Ignoring malformed %s %r", counter.value, latest)
            return 1
        return sequence + 1
