from sqlalchemy import Column, DateTime, Integer, String

from ledger.core.database import Base
from ledger.models.shared import UUIDType, utc_now


class IdCounter(Base):
    """Per-organization document counter backing atomic sequence generation."""

    __tablename__ = "id_counters"

    organization_id = Column(UUIDType, primary_key=True)
    counter_type = Column(String(50), primary_key=True)
    current_value = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)
