"""Prize wheel configuration."""

from __future__ import annotations

from enum import Enum
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum as SqlEnum,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from snapbag_api.db.base import Base, enum_values


class WheelPrizeRewardType(str, Enum):
    """What a voucher for the prize is worth on redemption."""

    VOUCHER = "voucher"
    POINTS = "points"


class WheelPrize(Base):
    """One of the twelve wheel segments, optionally restricted to provinces."""

    __tablename__ = "wheel_prizes"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    position = Column(Integer, nullable=False, unique=True)
    partner_id = Column(UUID(as_uuid=True), ForeignKey("partners.id"), nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    conditions = Column(Text, nullable=True)
    color = Column(String(16), nullable=False)
    start_angle = Column(Integer, nullable=False)
    end_angle = Column(Integer, nullable=False)
    validity_days = Column(Integer, nullable=False, default=30, server_default="30")
    is_national = Column(Boolean, nullable=False, default=True, server_default="true")
    provinces = Column(JSON, nullable=False, default=list)
    reward_type = Column(
        SqlEnum(WheelPrizeRewardType, name="wheel_prize_reward_type", values_callable=enum_values),
        nullable=False,
        default=WheelPrizeRewardType.VOUCHER,
        server_default=WheelPrizeRewardType.VOUCHER.value,
    )
    points_amount = Column(Integer, nullable=False, default=0, server_default="0")
    is_active = Column(Boolean, nullable=False, default=True, server_default="true")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    partner = relationship("Partner", back_populates="prizes")
    vouchers = relationship("Voucher", back_populates="prize")
