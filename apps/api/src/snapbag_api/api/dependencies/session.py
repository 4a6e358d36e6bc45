"""Session-aware dependencies for member and partner APIs."""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from snapbag_api.db.session import get_session
from snapbag_api.models.partner import Partner
from snapbag_api.models.user import User

from .security import require_partner_api_key


def _parse_identifier(raw: str | None, *, missing: str, invalid: str) -> UUID:
    if not raw:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=missing)
    try:
        return UUID(raw)
    except ValueError as error:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=invalid) from error


async def require_member_session(
    session_user: str | None = Header(None, alias="X-Session-User"),
    db: AsyncSession = Depends(get_session),
) -> User:
    """Resolve the authenticated user from forwarded session headers."""

    user_id = _parse_identifier(
        session_user,
        missing="Missing session user context",
        invalid="Invalid session user identifier",
    )
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session user not found")
    return user


async def require_partner_session(
    session_partner: str | None = Header(None, alias="X-Session-Partner"),
    _: None = Depends(require_partner_api_key),
    db: AsyncSession = Depends(get_session),
) -> Partner:
    """Resolve the redeeming partner; inactive partners are refused."""

    partner_id = _parse_identifier(
        session_partner,
        missing="Missing session partner context",
        invalid="Invalid session partner identifier",
    )
    result = await db.execute(select(Partner).where(Partner.id == partner_id))
    partner = result.scalar_one_or_none()
    if partner is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session partner not found")
    if not partner.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Partner account inactive")
    return partner
