from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, String, func
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import UUID

from snapbag_api.db.base import Base


class Partner(Base):
    """Merchant that sponsors wheel prizes and redeems vouchers."""

    __tablename__ = "partners"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String, nullable=False)
    slug = Column(String, nullable=False, unique=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True, server_default="true")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    prizes = relationship("WheelPrize", back_populates="partner")
