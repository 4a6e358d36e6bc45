from uuid import uuid4

from sqlalchemy import Column, DateTime, Index, Integer, String, func
from sqlalchemy.dialects.postgresql import UUID

from snapbag_api.db.base import Base


class RateLimitWindow(Base):
    """One recorded request; rows inside the trailing window are summed."""

    __tablename__ = "rate_limit_windows"
    __table_args__ = (
        Index("ix_rate_limit_windows_lookup", "identifier", "action", "window_start"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    identifier = Column(String, nullable=False)
    action = Column(String(64), nullable=False)
    count = Column(Integer, nullable=False, default=1, server_default="1")
    window_start = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
