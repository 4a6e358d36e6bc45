"""Point and XP credits with their audit trail."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from loguru import logger
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from snapbag_api.core.settings import settings
from snapbag_api.models.transaction import PointsTransaction, PointsTransactionType
from snapbag_api.models.user import User
from snapbag_api.services.errors import UserNotFound


class BalanceService:
    """Apply balance changes as SQL increments so concurrent credits never lose updates."""

    def __init__(self, db_session: AsyncSession) -> None:
        self._db = db_session

    async def credit(
        self,
        user_id: UUID,
        *,
        points: int,
        xp: int,
        transaction_type: PointsTransactionType,
        description: str,
        metadata: dict[str, Any] | None = None,
    ) -> PointsTransaction:
        """Add ``points`` and ``xp`` to the user, recompute the level and append an audit row."""

        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(
                points=User.points + points,
                lifetime_xp=User.lifetime_xp + xp,
                level=(User.lifetime_xp + xp) // settings.xp_per_level + 1,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self._db.execute(stmt)
        if result.rowcount == 0:
            raise UserNotFound()

        entry = PointsTransaction(
            user_id=user_id,
            type=transaction_type,
            description=description,
            points=points,
            lifetime_xp=xp,
            metadata_json=metadata or {},
        )
        self._db.add(entry)
        await self._db.flush()
        logger.info(
            "Credited balance",
            user_id=str(user_id),
            points=points,
            xp=xp,
            transaction_type=transaction_type.value,
        )
        return entry

    async def record(
        self,
        user_id: UUID,
        *,
        transaction_type: PointsTransactionType,
        description: str,
        metadata: dict[str, Any] | None = None,
    ) -> PointsTransaction:
        """Append a zero-value audit row for events that do not move the balance."""

        entry = PointsTransaction(
            user_id=user_id,
            type=transaction_type,
            description=description,
            points=0,
            lifetime_xp=0,
            metadata_json=metadata or {},
        )
        self._db.add(entry)
        await self._db.flush()
        return entry
