"""Wheel spins: consume a spin atomically and issue the winning voucher."""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable
from uuid import UUID

from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from snapbag_api.core.clock import ensure_aware, utcnow
from snapbag_api.core.settings import settings
from snapbag_api.models.transaction import PointsTransactionType
from snapbag_api.models.user import User
from snapbag_api.models.voucher import Voucher, VoucherStatus
from snapbag_api.models.wheel import WheelPrize
from snapbag_api.observability.rewards import get_reward_store
from snapbag_api.services.balances import BalanceService
from snapbag_api.services.errors import (
    NoPrizesAvailable,
    NoSpinsAvailable,
    SpinAlreadyConsumed,
    UserNotFound,
)

from .prize_pool import eligible_prizes, normalize_angle, resolve_prize


def random_angle() -> float:
    """Uniform landing angle in ``[0, 360)`` with hundredth-degree resolution."""

    return secrets.randbelow(36000) / 100


@dataclass
class SpinOutcome:
    prize: WheelPrize
    voucher: Voucher
    landing_angle: float
    spins_remaining: int


class SpinService:
    """Resolve wheel spins for a user."""

    def __init__(
        self,
        db_session: AsyncSession,
        *,
        angle_source: Callable[[], float] | None = None,
    ) -> None:
        self._db = db_session
        self._angle_source = angle_source or random_angle
        self._balances = BalanceService(db_session)

    async def list_active_prizes(self) -> list[WheelPrize]:
        stmt = (
            select(WheelPrize)
            .options(selectinload(WheelPrize.partner))
            .where(WheelPrize.is_active.is_(True))
            .order_by(WheelPrize.position.asc())
        )
        result = await self._db.execute(stmt)
        return list(result.scalars().all())

    async def list_prizes_for_user(self, user: User) -> list[WheelPrize]:
        """Active prizes the user may win, ordered by wheel position."""

        return eligible_prizes(await self.list_active_prizes(), user.province)

    async def spin(
        self,
        user_id: UUID,
        landing_angle: float | None = None,
        *,
        now: datetime | None = None,
    ) -> SpinOutcome:
        """Spend one spin and issue a voucher for the segment the wheel lands on.

        ``landing_angle`` is honoured only when the caller passes one; otherwise
        the angle is drawn server side. A non-finite angle raises ``ValueError``
        before the database is read. The spin counter is decremented with a
        conditional update so a stale read cannot spend the same spin twice.
        """

        if landing_angle is not None:
            landing_angle = normalize_angle(landing_angle)

        now = ensure_aware(now or utcnow())
        store = get_reward_store()

        user = await self._db.get(User, user_id)
        if user is None:
            raise UserNotFound()
        if user.spins_available <= 0:
            store.record_spin("no_spins")
            raise NoSpinsAvailable()

        prizes = await self.list_prizes_for_user(user)
        if not prizes:
            store.record_spin("no_prizes")
            logger.warning("No eligible wheel prizes", user_id=str(user_id), province=user.province)
            raise NoPrizesAvailable()

        angle = landing_angle if landing_angle is not None else normalize_angle(self._angle_source())
        prize = resolve_prize(prizes, angle)

        consumed = await self._db.execute(
            update(User)
            .where(User.id == user_id, User.spins_available > 0)
            .values(spins_available=User.spins_available - 1)
            .execution_options(synchronize_session=False)
        )
        if consumed.rowcount == 0:
            await self._db.rollback()
            store.record_spin("already_consumed")
            logger.warning("Spin already consumed by a concurrent request", user_id=str(user_id))
            raise SpinAlreadyConsumed()

        voucher = Voucher(
            code=await self._generate_unique_code(),
            user_id=user_id,
            prize=prize,
            partner_id=prize.partner_id,
            status=VoucherStatus.PENDING_CLAIM,
            expires_at=now + timedelta(days=prize.validity_days),
            created_at=now,
        )
        self._db.add(voucher)
        await self._db.flush()

        await self._balances.record(
            user_id,
            transaction_type=PointsTransactionType.WHEEL_SPIN,
            description=f"Won {prize.title}",
            metadata={
                "prize_id": str(prize.id),
                "landing_angle": angle,
                "voucher_id": str(voucher.id),
            },
        )
        await self._db.commit()
        await self._db.refresh(user)

        store.record_spin("won")
        logger.info(
            "Resolved wheel spin",
            user_id=str(user_id),
            prize_id=str(prize.id),
            position=prize.position,
            landing_angle=angle,
            voucher_id=str(voucher.id),
        )
        return SpinOutcome(
            prize=prize,
            voucher=voucher,
            landing_angle=angle,
            spins_remaining=user.spins_available,
        )

    async def _generate_unique_code(self) -> str:
        candidate = secrets.token_hex(settings.voucher_code_bytes).upper()
        result = await self._db.execute(select(Voucher.id).where(Voucher.code == candidate))
        if result.scalar_one_or_none() is not None:
            return await self._generate_unique_code()
        return candidate
