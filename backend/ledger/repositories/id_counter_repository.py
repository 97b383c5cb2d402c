"""Repository for the per-organization document counters."""

from uuid import UUID

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from ledger.models.id_counter import IdCounter
from ledger.models.shared import utc_now

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class IdCounterRepository:
    def __init__(self, db: Session):
        self.db = db

    def supports_atomic_increment(self) -> bool:
        """Whether the bound dialect can increment-and-return in one statement."""
        dialect = self.db.get_bind().dialect
        return dialect.name in _UPSERT_DIALECTS and bool(getattr(dialect, "insert_returning", False))

    def increment(self, organization_id: UUID, counter_type: str) -> int:
        """Atomically bump the counter and return its new value.

        A missing counter row is created with value 1. The row stays locked
        until the surrounding transaction ends, so concurrent callers for the
        same ``(organization_id, counter_type)`` are serialized by the database.
        """
        insert = _UPSERT_DIALECTS[self.db.get_bind().dialect.name]
        now = utc_now()
        stmt = insert(IdCounter).values(
            organization_id=organization_id,
            counter_type=counter_type,
            current_value=1,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[IdCounter.organization_id, IdCounter.counter_type],
            set_={"current_value": IdCounter.current_value + 1, "updated_at": now},
        ).returning(IdCounter.current_value)
        return int(self.db.execute(stmt).scalar_one())

    def get_value(self, organization_id: UUID, counter_type: str) -> int:
        counter = (
            self.db.query(IdCounter)
            .filter(
                IdCounter.organization_id == organization_id,
                IdCounter.counter_type == counter_type,
            )
            .first()
        )
        return int(counter.current_value) if counter else 0
