"""Signed bag tokens, their batches and the scan ledger."""

from __future__ import annotations

from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from snapbag_api.db.base import Base


class BagBatch(Base):
    """Group of bags generated and printed together."""

    __tablename__ = "bag_batches"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    slug = Column(String, nullable=False, unique=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    total_codes = Column(Integer, nullable=False, default=0, server_default="0")
    is_active = Column(Boolean, nullable=False, default=True, server_default="true")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    bags = relationship("Bag", back_populates="batch")


class Bag(Base):
    """Physical token identified by ``bag_id`` and signed at issuance."""

    __tablename__ = "bags"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    bag_id = Column(String, nullable=False, unique=True, index=True)
    batch_id = Column(UUID(as_uuid=True), ForeignKey("bag_batches.id"), nullable=False)
    hmac_signature = Column(String(128), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True, server_default="true")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    batch = relationship("BagBatch", back_populates="bags")
    scans = relationship("BagScan", back_populates="bag")


class BagScan(Base):
    """Accepted scan of a bag by a user; append-only."""

    __tablename__ = "bag_scans"
    __table_args__ = (
        UniqueConstraint("user_id", "bag_id", name="uq_bag_scans_user_bag"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    bag_id = Column(UUID(as_uuid=True), ForeignKey("bags.id"), nullable=False)
    device_id = Column(String, nullable=True)
    ip_address = Column(String(45), nullable=True)
    points_awarded = Column(Integer, nullable=False, default=0, server_default="0")
    xp_awarded = Column(Integer, nullable=False, default=0, server_default="0")
    scanned_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    bag = relationship("Bag", back_populates="scans")
