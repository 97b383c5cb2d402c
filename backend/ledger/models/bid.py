from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, func

from ledger.core.database import Base
from ledger.models.shared import UUIDType, generate_uuid


class Bid(Base):
    """Bid owned by the bids subsystem. Links a job to its client organization."""

    __tablename__ = "bids"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    bid_number = Column(String(100), nullable=False)
    organization_id = Column(
        UUIDType, ForeignKey("organizations.id", ondelete="RESTRICT"), nullable=True, index=True
    )
    title = Column(String(255), nullable=True)
    is_deleted = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
