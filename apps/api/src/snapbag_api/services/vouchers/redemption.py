"""Partner-facing voucher verification and redemption."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from loguru import logger
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from snapbag_api.core.clock import ensure_aware, utcnow
from snapbag_api.core.settings import settings
from snapbag_api.models.transaction import PointsTransactionType
from snapbag_api.models.voucher import Voucher, VoucherStatus
from snapbag_api.models.wheel import WheelPrizeRewardType
from snapbag_api.observability.rewards import get_reward_store
from snapbag_api.services.balances import BalanceService
from snapbag_api.services.errors import VoucherAlreadyUsed, VoucherNotFound, VoucherWrongPartner

from .lifecycle import VoucherLifecycleService, VoucherView, remaining_seconds


@dataclass
class RedemptionReceipt:
    voucher: Voucher
    points_awarded: int
    redeemed_at: datetime


class PartnerRedemptionService:
    """Verify and redeem claimed vouchers presented at a partner counter."""

    def __init__(
        self,
        db_session: AsyncSession,
        *,
        lifecycle: VoucherLifecycleService | None = None,
    ) -> None:
        self._db = db_session
        self._lifecycle = lifecycle or VoucherLifecycleService(db_session)
        self._balances = BalanceService(db_session)

    async def verify(self, code: str, partner_id: UUID, *, now: datetime | None = None) -> VoucherView:
        """Check that ``code`` is a claimed voucher this partner may redeem right now."""

        now = ensure_aware(now or utcnow())
        voucher = await self._redeemable(code, partner_id, now)
        get_reward_store().record_voucher_transition("verified")
        logger.info("Verified voucher", voucher_id=str(voucher.id), partner_id=str(partner_id))
        return VoucherView(
            voucher=voucher,
            remaining_seconds=remaining_seconds(voucher, now, self._lifecycle.window_seconds),
        )

    async def redeem(self, code: str, partner_id: UUID, *, now: datetime | None = None) -> RedemptionReceipt:
        """Mark the voucher used; a second call for the same code always fails."""

        now = ensure_aware(now or utcnow())
        voucher = await self._redeemable(code, partner_id, now)

        result = await self._db.execute(
            update(Voucher)
            .where(Voucher.id == voucher.id, Voucher.status == VoucherStatus.CLAIMED)
            .values(status=VoucherStatus.USED, redeemed_at=now, redeemed_by_partner_id=partner_id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await self._db.rollback()
            logger.warning("Voucher redeemed concurrently", voucher_id=str(voucher.id))
            raise VoucherAlreadyUsed()

        prize = voucher.prize
        points_awarded = 0
        if prize.reward_type == WheelPrizeRewardType.POINTS and prize.points_amount > 0:
            points_awarded = prize.points_amount
            await self._balances.credit(
                voucher.user_id,
                points=points_awarded,
                xp=points_awarded,
                transaction_type=PointsTransactionType.VOUCHER_REDEEM,
                description=f"Redeemed {prize.title}",
                metadata={
                    "voucher_id": str(voucher.id),
                    "prize_id": str(prize.id),
                    "partner_id": str(partner_id),
                },
            )
        await self._db.commit()

        get_reward_store().record_voucher_transition("used")
        logger.info(
            "Redeemed voucher",
            voucher_id=str(voucher.id),
            partner_id=str(partner_id),
            points_awarded=points_awarded,
        )
        voucher = await self._lifecycle.get_voucher(voucher.id)
        return RedemptionReceipt(voucher=voucher, points_awarded=points_awarded, redeemed_at=now)

    async def _redeemable(self, code: str, partner_id: UUID, now: datetime) -> Voucher:
        voucher = await self._lifecycle.get_voucher_by_code(code)
        if voucher is None:
            raise VoucherNotFound()
        if settings.enforce_partner_match and voucher.partner_id != partner_id:
            logger.warning(
                "Voucher presented at wrong partner",
                voucher_id=str(voucher.id),
                partner_id=str(partner_id),
            )
            raise VoucherWrongPartner()

        voucher = await self._lifecycle.apply_lazy_expiry(voucher, now)
        if voucher.status != VoucherStatus.CLAIMED:
            self._lifecycle.raise_for_redemption(voucher)
        return voucher
