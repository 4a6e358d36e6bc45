"""Reward engine counters for dashboards."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from snapbag_api.api.dependencies.security import require_internal_api_key
from snapbag_api.observability.rewards import get_reward_store


router = APIRouter(prefix="/observability", tags=["Observability"])


@router.get(
    "/rewards",
    dependencies=[Depends(require_internal_api_key)],
    summary="Reward engine observability snapshot",
)
async def get_reward_snapshot() -> dict[str, object]:
    """Scan, spin, voucher and rate-limit outcome counters since process start."""
    return get_reward_store().snapshot().as_dict()
