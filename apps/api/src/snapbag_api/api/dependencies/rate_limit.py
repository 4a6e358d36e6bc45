"""FastAPI dependency that applies the per-action sliding-window quota."""

from __future__ import annotations

from typing import Awaitable, Callable

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from snapbag_api.api.errors import raise_http_error
from snapbag_api.core.settings import settings
from snapbag_api.db.session import get_session
from snapbag_api.services.errors import RateLimited
from snapbag_api.services.security import RateLimiter


def _client_identifier(request: Request, session_user: str | None, session_partner: str | None) -> str:
    if session_user:
        return f"user:{session_user}"
    if session_partner:
        return f"partner:{session_partner}"
    host = request.client.host if request.client else "unknown"
    return f"ip:{host}"


def rate_limited(action: str) -> Callable[..., Awaitable[None]]:
    """Build a dependency enforcing ``settings.<action>_rate_limit``.

    The recorded hit is committed immediately so it counts even when the
    request itself is rejected further down.
    """

    policy_lookup = settings.rate_limit_for
    policy_lookup(action)

    async def dependency(
        request: Request,
        session_user: str | None = Header(None, alias="X-Session-User"),
        session_partner: str | None = Header(None, alias="X-Session-Partner"),
        db: AsyncSession = Depends(get_session),
    ) -> None:
        if not settings.rate_limit_enabled:
            return
        policy = policy_lookup(action)
        identifier = _client_identifier(request, session_user, session_partner)
        try:
            await RateLimiter(db).hit(identifier, action, policy.max_requests, policy.window_minutes)
        except RateLimited as error:
            raise_http_error(error)
        await db.commit()

    return dependency
