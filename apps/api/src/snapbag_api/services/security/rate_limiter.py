"""Sliding-window request throttle persisted in the relational store."""

from __future__ import annotations

from datetime import datetime, timedelta

from loguru import logger
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from snapbag_api.core.clock import utcnow
from snapbag_api.models.rate_limit import RateLimitWindow
from snapbag_api.observability.rewards import get_reward_store
from snapbag_api.services.errors import RateLimited


class RateLimiter:
    """Throttle keyed by (identifier, action).

    ``allow`` sums the counts recorded inside the trailing window; callers
    invoke ``record`` only after ``allow`` succeeded. Two requests racing at the
    boundary can both pass, overshooting the quota by at most one.
    """

    def __init__(self, db_session: AsyncSession) -> None:
        self._db = db_session

    async def allow(
        self,
        identifier: str,
        action: str,
        max_requests: int,
        window_minutes: int,
        *,
        now: datetime | None = None,
    ) -> bool:
        now = now or utcnow()
        window_start = now - timedelta(minutes=window_minutes)
        stmt = select(func.coalesce(func.sum(RateLimitWindow.count), 0)).where(
            RateLimitWindow.identifier == identifier,
            RateLimitWindow.action == action,
            RateLimitWindow.window_start >= window_start,
        )
        used = int((await self._db.execute(stmt)).scalar_one())
        return used < max_requests

    async def record(self, identifier: str, action: str, *, now: datetime | None = None) -> RateLimitWindow:
        entry = RateLimitWindow(
            identifier=identifier,
            action=action,
            count=1,
            window_start=now or utcnow(),
        )
        self._db.add(entry)
        await self._db.flush()
        return entry

    async def hit(
        self,
        identifier: str,
        action: str,
        max_requests: int,
        window_minutes: int,
        *,
        now: datetime | None = None,
    ) -> None:
        """Check the quota and record the request, raising ``RateLimited`` when exhausted."""

        if not await self.allow(identifier, action, max_requests, window_minutes, now=now):
            get_reward_store().record_rate_limited(action)
            logger.warning(
                "Rate limit exceeded",
                identifier=identifier,
                action=action,
                max_requests=max_requests,
                window_minutes=window_minutes,
            )
            raise RateLimited()
        await self.record(identifier, action, now=now)

    async def purge(self, before: datetime) -> int:
        """Delete window rows older than ``before``; returns the number removed."""

        result = await self._db.execute(delete(RateLimitWindow).where(RateLimitWindow.window_start < before))
        removed = result.rowcount or 0
        logger.info("Purged rate limit windows", removed=removed, before=before.isoformat())
        return removed
