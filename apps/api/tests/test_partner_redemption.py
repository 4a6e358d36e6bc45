import datetime as dt

import pytest
from sqlalchemy import select

from snapbag_api.models.partner import Partner
from snapbag_api.models.transaction import PointsTransaction, PointsTransactionType
from snapbag_api.models.user import User
from snapbag_api.models.voucher import Voucher, VoucherExpiryReason, VoucherStatus
from snapbag_api.models.wheel import WheelPrize, WheelPrizeRewardType
from snapbag_api.services.errors import (
    RedemptionWindowExpired,
    VoucherAlreadyUsed,
    VoucherNotClaimed,
    VoucherNotFound,
    VoucherWrongPartner,
)
from snapbag_api.services.vouchers import PartnerRedemptionService, VoucherLifecycleService
from snapbag_api.services.wheel import SpinService


T0 = dt.datetime(2026, 8, 10, 18, 0, tzinfo=dt.timezone.utc)


async def _won_voucher(session_factory, user, angle: float) -> Voucher:
    async with session_factory() as session:
        outcome = await SpinService(session).spin(user.id, angle, now=T0 - dt.timedelta(days=1))
    return outcome.voucher


async def _claimed_voucher(session_factory, user, angle: float = 80) -> Voucher:
    voucher = await _won_voucher(session_factory, user, angle)
    async with session_factory() as session:
        await VoucherLifecycleService(session).claim(voucher.id, user.id, now=T0)
    return voucher


@pytest.mark.asyncio
async def test_verify_within_window_then_expired_after(session_factory, sample_wheel, make_user) -> None:
    partner, _ = sample_wheel
    user = await make_user(spins_available=1)
    voucher = await _claimed_voucher(session_factory, user)

    async with session_factory() as session:
        service = PartnerRedemptionService(session)
        view = await service.verify(voucher.code, partner.id, now=T0 + dt.timedelta(minutes=9, seconds=59))
        assert view.remaining_seconds == 1
        assert view.voucher.prize.title == "JACKPOT"

        with pytest.raises(RedemptionWindowExpired):
            await service.verify(voucher.code, partner.id, now=T0 + dt.timedelta(minutes=10, seconds=1))

    async with session_factory() as session:
        stored = await session.get(Voucher, voucher.id)

    assert stored.status == VoucherStatus.EXPIRED
    assert stored.expired_reason == VoucherExpiryReason.REDEMPTION_WINDOW


@pytest.mark.asyncio
async def test_redeem_credits_points_prize_once(session_factory, sample_wheel, make_user) -> None:
    partner, _ = sample_wheel
    user = await make_user(spins_available=1)
    voucher = await _claimed_voucher(session_factory, user, angle=80)

    async with session_factory() as session:
        service = PartnerRedemptionService(session)
        receipt = await service.redeem(voucher.code.lower(), partner.id, now=T0 + dt.timedelta(minutes=3))

        assert receipt.points_awarded == 100
        assert receipt.voucher.status == VoucherStatus.USED
        assert receipt.voucher.redeemed_by_partner_id == partner.id

        with pytest.raises(VoucherAlreadyUsed):
            await service.redeem(voucher.code, partner.id, now=T0 + dt.timedelta(minutes=4))
        with pytest.raises(VoucherAlreadyUsed):
            await service.verify(voucher.code, partner.id, now=T0 + dt.timedelta(minutes=4))

        refreshed = await session.get(User, user.id, populate_existing=True)
        assert refreshed.points == 100
        assert refreshed.lifetime_xp == 100

        redeem_entries = (
            await session.execute(
                select(PointsTransaction).where(PointsTransaction.type == PointsTransactionType.VOUCHER_REDEEM)
            )
        ).scalars().all()
        assert len(redeem_entries) == 1
        assert redeem_entries[0].points == 100


@pytest.mark.asyncio
async def test_voucher_prize_awards_no_points(session_factory, sample_wheel, make_user) -> None:
    partner, prizes = sample_wheel
    async with session_factory() as session:
        jackpot = await session.get(WheelPrize, prizes[3].id)
        jackpot.reward_type = WheelPrizeRewardType.VOUCHER
        await session.commit()

    user = await make_user(spins_available=1)
    voucher = await _claimed_voucher(session_factory, user, angle=90)

    async with session_factory() as session:
        receipt = await PartnerRedemptionService(session).redeem(voucher.code, partner.id, now=T0)
        refreshed = await session.get(User, user.id, populate_existing=True)

    assert receipt.points_awarded == 0
    assert refreshed.points == 0


@pytest.mark.asyncio
async def test_unclaimed_and_unknown_vouchers_are_rejected(session_factory, sample_wheel, make_user) -> None:
    partner, _ = sample_wheel
    user = await make_user(spins_available=1)
    voucher = await _won_voucher(session_factory, user, 10)

    async with session_factory() as session:
        service = PartnerRedemptionService(session)
        with pytest.raises(VoucherNotClaimed):
            await service.verify(voucher.code, partner.id, now=T0)
        with pytest.raises(VoucherNotClaimed):
            await service.redeem(voucher.code, partner.id, now=T0)
        with pytest.raises(VoucherNotFound):
            await service.verify("FFFFFFFFFFFFFFFF", partner.id, now=T0)


@pytest.mark.asyncio
async def test_partner_match_is_enforced(session_factory, sample_wheel, make_user, monkeypatch) -> None:
    from snapbag_api.core.settings import settings

    partner, _ = sample_wheel
    user = await make_user(spins_available=1)
    voucher = await _claimed_voucher(session_factory, user)

    async with session_factory() as session:
        other = Partner(name="Bakker Bart", slug="bakker-bart")
        session.add(other)
        await session.commit()

        service = PartnerRedemptionService(session)
        with pytest.raises(VoucherWrongPartner):
            await service.redeem(voucher.code, other.id, now=T0 + dt.timedelta(minutes=1))

        monkeypatch.setattr(settings, "enforce_partner_match", False)
        receipt = await service.redeem(voucher.code, other.id, now=T0 + dt.timedelta(minutes=1))

    assert receipt.voucher.redeemed_by_partner_id == other.id
    assert receipt.voucher.partner_id == partner.id


@pytest.mark.asyncio
async def test_redeem_lost_to_concurrent_redeem_credits_once(session_factory, sample_wheel, make_user) -> None:
    partner, _ = sample_wheel
    user = await make_user(spins_available=1)
    voucher = await _claimed_voucher(session_factory, user, angle=80)
    redeem_at = T0 + dt.timedelta(minutes=2)

    async with session_factory() as session:
        service = PartnerRedemptionService(session)
        read_claimed = service._redeemable

        # The competing redemption commits after this request has seen the voucher claimed.
        async def claimed_then_redeemed_elsewhere(code, partner_id, now):
            found = await read_claimed(code, partner_id, now)
            async with session_factory() as rival:
                await PartnerRedemptionService(rival).redeem(code, partner_id, now=now)
            return found

        service._redeemable = claimed_then_redeemed_elsewhere

        with pytest.raises(VoucherAlreadyUsed):
            await service.redeem(voucher.code, partner.id, now=redeem_at)

    async with session_factory() as session:
        refreshed = await session.get(User, user.id)
        redeem_entries = (
            await session.execute(
                select(PointsTransaction).where(PointsTransaction.type == PointsTransactionType.VOUCHER_REDEEM)
            )
        ).scalars().all()
        stored = await session.get(Voucher, voucher.id)

    assert stored.status == VoucherStatus.USED
    assert len(redeem_entries) == 1
    assert refreshed.points == 100
    assert refreshed.lifetime_xp == 100
