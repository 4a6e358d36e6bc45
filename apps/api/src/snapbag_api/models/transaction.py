from enum import Enum
from uuid import uuid4

from sqlalchemy import JSON, Column, DateTime, Enum as SqlEnum, ForeignKey, Integer, String, func
from sqlalchemy.dialects.postgresql import UUID

from snapbag_api.db.base import Base, enum_values


class PointsTransactionType(str, Enum):
    """Audit categories for balance-affecting events."""

    QR_SCAN = "qr_scan"
    WHEEL_SPIN = "wheel_spin"
    VOUCHER_REDEEM = "voucher_redeem"


class PointsTransaction(Base):
    """Append-only audit entry for scans, spins and points redemptions."""

    __tablename__ = "points_transactions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(SqlEnum(PointsTransactionType, name="points_transaction_type", values_callable=enum_values), nullable=False)
    description = Column(String, nullable=False)
    points = Column(Integer, nullable=False, default=0, server_default="0")
    lifetime_xp = Column(Integer, nullable=False, default=0, server_default="0")
    metadata_json = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
