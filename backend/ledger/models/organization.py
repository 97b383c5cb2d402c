from sqlalchemy import Column, DateTime, String, func

from ledger.core.database import Base
from ledger.models.shared import UUIDType, generate_uuid


class Organization(Base):
    """Client organization. Owned by the tenancy subsystem; the ledger only reads it."""

    __tablename__ = "organizations"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    client_id = Column(String(50), nullable=True, unique=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
