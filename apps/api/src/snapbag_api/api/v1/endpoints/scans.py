"""Bag scan submission."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from snapbag_api.api.dependencies.rate_limit import rate_limited
from snapbag_api.api.dependencies.session import require_member_session
from snapbag_api.api.errors import raise_http_error
from snapbag_api.db.session import get_session
from snapbag_api.models.user import User
from snapbag_api.schemas.rewards import ScanRequest, ScanResponse
from snapbag_api.services.errors import RewardEngineError
from snapbag_api.services.scans import ScanService


router = APIRouter(prefix="/scans", tags=["Scans"])


@router.post(
    "",
    response_model=ScanResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limited("qr_scan"))],
    summary="Record a bag scan",
)
async def record_scan(
    payload: ScanRequest,
    request: Request,
    user: User = Depends(require_member_session),
    session: AsyncSession = Depends(get_session),
) -> ScanResponse:
    service = ScanService(session)
    try:
        outcome = await service.process_scan(
            user.id,
            payload.bag_id,
            payload.hmac_signature,
            payload.device_id,
            ip_address=request.client.host if request.client else None,
        )
    except RewardEngineError as error:
        await session.rollback()
        raise_http_error(error)

    return ScanResponse(
        scan_id=outcome.scan_id,
        points_awarded=outcome.points_awarded,
        xp_awarded=outcome.xp_awarded,
        spins_awarded=1 if outcome.spin_awarded else 0,
    )
