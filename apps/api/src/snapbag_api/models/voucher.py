"""Vouchers won on the prize wheel."""

from __future__ import annotations

from enum import Enum
from uuid import uuid4

from sqlalchemy import Column, DateTime, Enum as SqlEnum, ForeignKey, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from snapbag_api.db.base import Base, enum_values


class VoucherStatus(str, Enum):
    """Lifecycle statuses; ``used`` and ``expired`` are terminal."""

    PENDING_CLAIM = "pending_claim"
    CLAIMED = "claimed"
    USED = "used"
    EXPIRED = "expired"


class VoucherExpiryReason(str, Enum):
    """Which deadline moved a voucher to ``expired``."""

    OVERALL = "overall"
    REDEMPTION_WINDOW = "redemption_window"


class Voucher(Base):
    """Voucher issued to the winning user and redeemed by a partner."""

    __tablename__ = "vouchers"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    code = Column(String(32), nullable=False, unique=True, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    prize_id = Column(UUID(as_uuid=True), ForeignKey("wheel_prizes.id"), nullable=False)
    partner_id = Column(UUID(as_uuid=True), ForeignKey("partners.id"), nullable=False)
    status = Column(
        SqlEnum(VoucherStatus, name="voucher_status", values_callable=enum_values),
        nullable=False,
        default=VoucherStatus.PENDING_CLAIM,
        server_default=VoucherStatus.PENDING_CLAIM.value,
    )
    expires_at = Column(DateTime(timezone=True), nullable=False)
    claimed_at = Column(DateTime(timezone=True), nullable=True)
    redeemed_at = Column(DateTime(timezone=True), nullable=True)
    redeemed_by_partner_id = Column(UUID(as_uuid=True), ForeignKey("partners.id"), nullable=True)
    expired_reason = Column(SqlEnum(VoucherExpiryReason, name="voucher_expiry_reason", values_callable=enum_values), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    prize = relationship("WheelPrize", back_populates="vouchers")
    partner = relationship("Partner", foreign_keys=[partner_id])
