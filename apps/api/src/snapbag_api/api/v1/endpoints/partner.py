"""Partner counter endpoints: verify and redeem claimed vouchers."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from snapbag_api.api.dependencies.rate_limit import rate_limited
from snapbag_api.api.dependencies.session import require_partner_session
from snapbag_api.api.errors import raise_http_error
from snapbag_api.db.session import get_session
from snapbag_api.models.partner import Partner
from snapbag_api.schemas.rewards import (
    RedeemRequest,
    RedeemResponse,
    VoucherResponse,
    VoucherVerificationResponse,
)
from snapbag_api.services.errors import RewardEngineError
from snapbag_api.services.vouchers import PartnerRedemptionService


router = APIRouter(prefix="/partner", tags=["Partner"])


@router.get(
    "/verify-voucher/{code}",
    response_model=VoucherVerificationResponse,
    dependencies=[Depends(rate_limited("partner_verify"))],
    summary="Check a presented voucher",
)
async def verify_voucher(
    code: str,
    partner: Partner = Depends(require_partner_session),
    session: AsyncSession = Depends(get_session),
) -> VoucherVerificationResponse:
    try:
        view = await PartnerRedemptionService(session).verify(code, partner.id)
    except RewardEngineError as error:
        raise_http_error(error)

    return VoucherVerificationResponse(
        valid=True,
        message="Voucher is valid",
        voucher=VoucherResponse.from_view(view),
        time_remaining=view.remaining_seconds,
    )


@router.post(
    "/redeem-voucher",
    response_model=RedeemResponse,
    dependencies=[Depends(rate_limited("partner_redeem"))],
    summary="Redeem a claimed voucher",
)
async def redeem_voucher(
    payload: RedeemRequest,
    partner: Partner = Depends(require_partner_session),
    session: AsyncSession = Depends(get_session),
) -> RedeemResponse:
    try:
        receipt = await PartnerRedemptionService(session).redeem(payload.voucher_code, partner.id)
    except RewardEngineError as error:
        await session.rollback()
        raise_http_error(error)

    return RedeemResponse(
        success=True,
        message="Voucher redeemed",
        points_awarded=receipt.points_awarded,
        redeemed_at=receipt.redeemed_at,
    )
