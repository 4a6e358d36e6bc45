from uuid import uuid4

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String, func
from sqlalchemy.dialects.postgresql import UUID

from snapbag_api.db.base import Base


class User(Base):
    """Player account with its game balance.

    Identity and login live upstream; this row only carries what the reward
    engine mutates: points, lifetime XP, derived level and the spin counter.
    """

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("spins_available >= 0", name="ck_users_spins_available_non_negative"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    email = Column(String, nullable=True, unique=True, index=True)
    display_name = Column(String, nullable=True)
    province = Column(String(64), nullable=True)
    points = Column(Integer, nullable=False, default=0, server_default="0")
    lifetime_xp = Column(Integer, nullable=False, default=0, server_default="0")
    level = Column(Integer, nullable=False, default=1, server_default="1")
    spins_available = Column(Integer, nullable=False, default=0, server_default="0")
    last_spin_grant_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
