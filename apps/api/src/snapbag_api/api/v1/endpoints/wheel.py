"""Prize wheel endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from snapbag_api.api.dependencies.rate_limit import rate_limited
from snapbag_api.api.dependencies.session import require_member_session
from snapbag_api.api.errors import raise_http_error
from snapbag_api.core.settings import settings
from snapbag_api.db.session import get_session
from snapbag_api.models.user import User
from snapbag_api.schemas.rewards import (
    SpinRequest,
    SpinResponse,
    VoucherResponse,
    WheelPrizeListResponse,
    WheelPrizeResponse,
)
from snapbag_api.services.errors import RewardEngineError
from snapbag_api.services.vouchers import VoucherView
from snapbag_api.services.wheel import SpinService


router = APIRouter(prefix="/wheel", tags=["Wheel"])


@router.get("/prizes", response_model=WheelPrizeListResponse, summary="Prizes visible to the member")
async def list_prizes(
    user: User = Depends(require_member_session),
    session: AsyncSession = Depends(get_session),
) -> WheelPrizeListResponse:
    prizes = await SpinService(session).list_prizes_for_user(user)
    return WheelPrizeListResponse(
        prizes=[WheelPrizeResponse.from_prize(prize) for prize in prizes],
        has_local_prizes=any(not prize.is_national for prize in prizes),
    )


@router.post(
    "/spin",
    response_model=SpinResponse,
    dependencies=[Depends(rate_limited("wheel_spin"))],
    summary="Spend a spin",
)
async def spin_wheel(
    payload: SpinRequest | None = None,
    user: User = Depends(require_member_session),
    session: AsyncSession = Depends(get_session),
) -> SpinResponse:
    landing_angle = None
    if payload is not None and settings.wheel_trust_client_angle:
        landing_angle = payload.landing_angle_degrees

    try:
        outcome = await SpinService(session).spin(user.id, landing_angle)
    except RewardEngineError as error:
        await session.rollback()
        raise_http_error(error)

    return SpinResponse(
        voucher=VoucherResponse.from_view(VoucherView(voucher=outcome.voucher, remaining_seconds=None)),
        prize=WheelPrizeResponse.from_prize(outcome.prize),
        landing_angle=outcome.landing_angle,
        spins_remaining=outcome.spins_remaining,
    )
