"""Member voucher endpoints."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from snapbag_api.api.dependencies.rate_limit import rate_limited
from snapbag_api.api.dependencies.session import require_member_session
from snapbag_api.api.errors import raise_http_error
from snapbag_api.core.clock import ensure_aware
from snapbag_api.db.session import get_session
from snapbag_api.models.user import User
from snapbag_api.models.voucher import VoucherStatus
from snapbag_api.schemas.rewards import VoucherClaimResponse, VoucherListResponse, VoucherResponse
from snapbag_api.services.errors import RewardEngineError
from snapbag_api.services.vouchers import VoucherLifecycleService


router = APIRouter(prefix="/vouchers", tags=["Vouchers"])


@router.get("", response_model=VoucherListResponse, summary="List the member's vouchers")
async def list_vouchers(
    status_filter: Optional[VoucherStatus] = Query(None, alias="status"),
    user: User = Depends(require_member_session),
    session: AsyncSession = Depends(get_session),
) -> VoucherListResponse:
    listing = await VoucherLifecycleService(session).list_user_vouchers(user.id, status_filter)
    return VoucherListResponse(
        vouchers=[VoucherResponse.from_view(view) for view in listing.vouchers],
        unclaimed_count=listing.unclaimed_count,
    )


@router.get("/{voucher_id}", response_model=VoucherResponse, summary="Voucher detail")
async def get_voucher(
    voucher_id: UUID,
    user: User = Depends(require_member_session),
    session: AsyncSession = Depends(get_session),
) -> VoucherResponse:
    try:
        view = await VoucherLifecycleService(session).get_user_voucher(voucher_id, user.id)
    except RewardEngineError as error:
        raise_http_error(error)
    return VoucherResponse.from_view(view)


@router.post(
    "/{voucher_id}/claim",
    response_model=VoucherClaimResponse,
    dependencies=[Depends(rate_limited("voucher_claim"))],
    summary="Start the redemption window",
)
async def claim_voucher(
    voucher_id: UUID,
    user: User = Depends(require_member_session),
    session: AsyncSession = Depends(get_session),
) -> VoucherClaimResponse:
    service = VoucherLifecycleService(session)
    try:
        voucher = await service.claim(voucher_id, user.id)
    except RewardEngineError as error:
        await session.rollback()
        raise_http_error(error)

    minutes = service.window_seconds // 60
    return VoucherClaimResponse(
        success=True,
        message=f"Voucher claimed. Show it at the partner within {minutes} minutes.",
        claimed_at=ensure_aware(voucher.claimed_at),
    )
