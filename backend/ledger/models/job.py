from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, func

from ledger.core.database import Base
from ledger.models.shared import UUIDType, generate_uuid


class Job(Base):
    """Job owned by the jobs subsystem. Invoices bill against a job."""

    __tablename__ = "jobs"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    job_number = Column(String(100), nullable=False)
    name = Column(String(255), nullable=True)
    bid_id = Column(UUIDType, ForeignKey("bids.id", ondelete="RESTRICT"), nullable=True, index=True)
    is_deleted = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
