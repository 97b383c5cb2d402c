"""Column types and defaults shared by the ledger models."""

import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import String, TypeDecorator
from sqlalchemy.engine import Dialect

# performed_by of history entries written by background jobs
SYSTEM_ACTOR = "system"


class UUIDType(TypeDecorator[uuid.UUID]):
    """UUID stored as ``VARCHAR(36)`` on every backend; the migrations rely on it.

    Accepts ``uuid.UUID`` or its string form and always returns ``uuid.UUID``.
    """

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Dialect) -> str | None:
        if value is None:
            return None
        return str(value if isinstance(value, uuid.UUID) else uuid.UUID(str(value)))

    def process_result_value(self, value: Any, dialect: Dialect) -> uuid.UUID | None:
        if value is None or isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(str(value))


def generate_uuid() -> uuid.UUID:
    return uuid.uuid4()


def utc_now() -> datetime:
    """Timezone-aware current time; every timestamp column uses it."""
    return datetime.now(UTC)
