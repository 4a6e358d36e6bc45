"""Voucher state machine: pending_claim -> claimed -> used, with lazy expiry."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

from loguru import logger
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from snapbag_api.core.clock import ensure_aware, utcnow
from snapbag_api.core.settings import settings
from snapbag_api.models.voucher import Voucher, VoucherExpiryReason, VoucherStatus
from snapbag_api.models.wheel import WheelPrize
from snapbag_api.observability.rewards import get_reward_store
from snapbag_api.services.errors import (
    RedemptionWindowExpired,
    VoucherAlreadyClaimed,
    VoucherAlreadyUsed,
    VoucherExpired,
    VoucherNotClaimed,
    VoucherNotFound,
    VoucherWrongOwner,
)

TERMINAL_STATUSES = frozenset({VoucherStatus.USED, VoucherStatus.EXPIRED})


def _window(window_seconds: int | None) -> timedelta:
    return timedelta(seconds=window_seconds or settings.voucher_redemption_window_seconds)


def evaluate_expiry(
    voucher: Voucher,
    now: datetime,
    window_seconds: int | None = None,
) -> VoucherExpiryReason | None:
    """Return why ``voucher`` should be expired at ``now``, or ``None`` while it is live.

    A pending voucher lives until ``expires_at``. A claimed voucher additionally
    has to be redeemed within the redemption window after ``claimed_at``; the
    reason reported is whichever deadline passed first.
    """

    if voucher.status in TERMINAL_STATUSES:
        return None

    now = ensure_aware(now)
    expires_at = ensure_aware(voucher.expires_at)

    if voucher.status == VoucherStatus.PENDING_CLAIM:
        return VoucherExpiryReason.OVERALL if now >= expires_at else None

    if voucher.claimed_at is None:
        return VoucherExpiryReason.REDEMPTION_WINDOW
    window_deadline = ensure_aware(voucher.claimed_at) + _window(window_seconds)
    if now > window_deadline and window_deadline < expires_at:
        return VoucherExpiryReason.REDEMPTION_WINDOW
    if now >= expires_at:
        return VoucherExpiryReason.OVERALL
    if now > window_deadline:
        return VoucherExpiryReason.REDEMPTION_WINDOW
    return None


def remaining_seconds(voucher: Voucher, now: datetime, window_seconds: int | None = None) -> int | None:
    """Whole seconds left to redeem a claimed voucher; ``None`` for any other status."""

    if voucher.status != VoucherStatus.CLAIMED or voucher.claimed_at is None:
        return None
    deadline = min(
        ensure_aware(voucher.claimed_at) + _window(window_seconds),
        ensure_aware(voucher.expires_at),
    )
    left = (deadline - ensure_aware(now)).total_seconds()
    return max(0, math.floor(left))


@dataclass
class VoucherView:
    voucher: Voucher
    remaining_seconds: int | None


@dataclass
class VoucherListing:
    vouchers: list[VoucherView]
    unclaimed_count: int


class VoucherLifecycleService:
    """Member-facing voucher operations.

    Every read path runs ``apply_lazy_expiry`` first so no caller ever observes
    a live status on a voucher whose deadline has passed.
    """

    def __init__(self, db_session: AsyncSession, *, window_seconds: int | None = None) -> None:
        self._db = db_session
        self._window_seconds = window_seconds

    @property
    def window_seconds(self) -> int:
        return self._window_seconds or settings.voucher_redemption_window_seconds

    async def get_voucher(self, voucher_id: UUID) -> Voucher | None:
        return await self._load(Voucher.id == voucher_id)

    async def get_voucher_by_code(self, code: str) -> Voucher | None:
        return await self._load(Voucher.code == code.strip().upper())

    async def apply_lazy_expiry(self, voucher: Voucher, now: datetime | None = None) -> Voucher:
        """Persist ``expired`` when a deadline has passed and return the current row.

        The write is conditional on the status that was read, so a concurrent
        transition wins and the reloaded voucher reflects it.
        """

        now = ensure_aware(now or utcnow())
        reason = evaluate_expiry(voucher, now, self.window_seconds)
        if reason is None:
            return voucher

        result = await self._db.execute(
            update(Voucher)
            .where(Voucher.id == voucher.id, Voucher.status == voucher.status)
            .values(status=VoucherStatus.EXPIRED, expired_reason=reason)
            .execution_options(synchronize_session=False)
        )
        await self._db.commit()
        if result.rowcount == 1:
            get_reward_store().record_voucher_transition(f"expired_{reason.value}")
            logger.info(
                "Expired voucher",
                voucher_id=str(voucher.id),
                previous_status=voucher.status.value,
                reason=reason.value,
            )
        return await self._reload(voucher.id)

    async def claim(self, voucher_id: UUID, user_id: UUID, *, now: datetime | None = None) -> Voucher:
        """Start the redemption window on a pending voucher owned by ``user_id``."""

        now = ensure_aware(now or utcnow())
        voucher = await self.get_voucher(voucher_id)
        if voucher is None:
            raise VoucherNotFound()
        if voucher.user_id != user_id:
            logger.warning("Voucher claim by non-owner", voucher_id=str(voucher_id), user_id=str(user_id))
            raise VoucherWrongOwner()

        voucher = await self.apply_lazy_expiry(voucher, now)
        if voucher.status != VoucherStatus.PENDING_CLAIM:
            self._raise_for_claim(voucher)

        result = await self._db.execute(
            update(Voucher)
            .where(Voucher.id == voucher_id, Voucher.status == VoucherStatus.PENDING_CLAIM)
            .values(status=VoucherStatus.CLAIMED, claimed_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await self._db.rollback()
            self._raise_for_claim(await self._reload(voucher_id))
        await self._db.commit()

        get_reward_store().record_voucher_transition("claimed")
        logger.info("Claimed voucher", voucher_id=str(voucher_id), user_id=str(user_id))
        return await self._reload(voucher_id)

    async def get_user_voucher(
        self,
        voucher_id: UUID,
        user_id: UUID,
        *,
        now: datetime | None = None,
    ) -> VoucherView:
        """Detail view for the owner; other users get ``VoucherNotFound`` as if the id were unknown."""

        now = ensure_aware(now or utcnow())
        voucher = await self.get_voucher(voucher_id)
        if voucher is None or voucher.user_id != user_id:
            raise VoucherNotFound()
        voucher = await self.apply_lazy_expiry(voucher, now)
        return VoucherView(voucher=voucher, remaining_seconds=remaining_seconds(voucher, now, self.window_seconds))

    async def list_user_vouchers(
        self,
        user_id: UUID,
        status: VoucherStatus | None = None,
        *,
        now: datetime | None = None,
    ) -> VoucherListing:
        """Newest-first vouchers for a user, optionally filtered after lazy expiry."""

        now = ensure_aware(now or utcnow())
        stmt = (
            select(Voucher)
            .options(selectinload(Voucher.prize).selectinload(WheelPrize.partner), selectinload(Voucher.partner))
            .where(Voucher.user_id == user_id)
            .order_by(Voucher.created_at.desc())
        )
        vouchers = list((await self._db.execute(stmt)).scalars().all())

        refreshed: list[Voucher] = []
        for voucher in vouchers:
            refreshed.append(await self.apply_lazy_expiry(voucher, now))

        unclaimed_count = await self.count_unclaimed(user_id)
        views = [
            VoucherView(voucher=voucher, remaining_seconds=remaining_seconds(voucher, now, self.window_seconds))
            for voucher in refreshed
            if status is None or voucher.status == status
        ]
        return VoucherListing(vouchers=views, unclaimed_count=unclaimed_count)

    async def count_unclaimed(self, user_id: UUID) -> int:
        stmt = select(func.count(Voucher.id)).where(
            Voucher.user_id == user_id,
            Voucher.status == VoucherStatus.PENDING_CLAIM,
        )
        return int((await self._db.execute(stmt)).scalar_one())

    @staticmethod
    def _raise_for_claim(voucher: Voucher) -> None:
        if voucher.status == VoucherStatus.CLAIMED:
            raise VoucherAlreadyClaimed()
        if voucher.status == VoucherStatus.USED:
            raise VoucherAlreadyUsed()
        raise VoucherExpired()

    @staticmethod
    def raise_for_redemption(voucher: Voucher) -> None:
        """Raise the partner-facing error for a voucher that is not in ``claimed``."""

        if voucher.status == VoucherStatus.USED:
            raise VoucherAlreadyUsed()
        if voucher.status == VoucherStatus.EXPIRED:
            if voucher.expired_reason == VoucherExpiryReason.REDEMPTION_WINDOW:
                raise RedemptionWindowExpired()
            raise VoucherExpired()
        if voucher.status == VoucherStatus.PENDING_CLAIM:
            raise VoucherNotClaimed()

    async def _reload(self, voucher_id: UUID) -> Voucher:
        voucher = await self._load(Voucher.id == voucher_id)
        if voucher is None:
            raise VoucherNotFound()
        return voucher

    async def _load(self, criterion) -> Voucher | None:
        stmt = (
            select(Voucher)
            .options(selectinload(Voucher.prize).selectinload(WheelPrize.partner), selectinload(Voucher.partner))
            .where(criterion)
            .execution_options(populate_existing=True)
        )
        result = await self._db.execute(stmt)
        return result.scalar_one_or_none()
