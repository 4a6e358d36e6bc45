"""Scan ledger: verify a bag token, record the scan once and award the user."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from loguru import logger
from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from snapbag_api.core.clock import ensure_aware, start_of_day, utcnow
from snapbag_api.core.settings import settings
from snapbag_api.models.bag import Bag, BagBatch, BagScan
from snapbag_api.models.transaction import PointsTransactionType
from snapbag_api.models.user import User
from snapbag_api.observability.rewards import get_reward_store
from snapbag_api.services.balances import BalanceService
from snapbag_api.services.errors import BagInactive, DuplicateScan, InvalidSignature, UserNotFound
from snapbag_api.services.security import BagTokenSigner


@dataclass
class ScanOutcome:
    """Result of an accepted scan."""

    scan_id: UUID
    points_awarded: int
    xp_awarded: int
    spin_awarded: bool


class ScanService:
    """Accept bag scans at most once per (user, bag)."""

    def __init__(self, db_session: AsyncSession, *, signer: BagTokenSigner | None = None) -> None:
        self._db = db_session
        self._signer = signer or BagTokenSigner()
        self._balances = BalanceService(db_session)

    async def process_scan(
        self,
        user_id: UUID,
        bag_id: str,
        signature: str,
        device_id: str | None = None,
        *,
        ip_address: str | None = None,
        now: datetime | None = None,
    ) -> ScanOutcome:
        """Validate and record a scan, crediting points, XP and the daily spin.

        Rejections leave no partial state behind: nothing is written before the
        signature, bag status and duplicate checks pass, and a lost insert race
        rolls the transaction back.
        """

        now = ensure_aware(now or utcnow())
        store = get_reward_store()

        if not self._signer.verify(bag_id, signature):
            store.record_scan("invalid_signature")
            logger.warning("Rejected bag scan with invalid signature", user_id=str(user_id), bag_id=str(bag_id))
            raise InvalidSignature()

        user = await self._db.get(User, user_id)
        if user is None:
            raise UserNotFound()

        bag = await self._resolve_bag(bag_id)
        if not bag.is_active:
            store.record_scan("bag_inactive")
            logger.info("Rejected scan of inactive bag", user_id=str(user_id), bag_id=bag_id)
            raise BagInactive()

        if await self._already_scanned(user_id, bag.id):
            store.record_scan("duplicate")
            logger.info("Rejected duplicate bag scan", user_id=str(user_id), bag_id=bag_id)
            raise DuplicateScan()

        points = settings.scan_points_award
        xp = settings.scan_xp_award
        scan = BagScan(
            user_id=user_id,
            bag_id=bag.id,
            device_id=device_id,
            ip_address=ip_address,
            points_awarded=points,
            xp_awarded=xp,
            scanned_at=now,
        )
        self._db.add(scan)
        try:
            await self._db.flush()
        except IntegrityError:
            await self._db.rollback()
            store.record_scan("duplicate")
            logger.warning("Detected race when recording bag scan", user_id=str(user_id), bag_id=bag_id)
            raise DuplicateScan()

        await self._balances.credit(
            user_id,
            points=points,
            xp=xp,
            transaction_type=PointsTransactionType.QR_SCAN,
            description=f"Scanned bag {bag_id}",
            metadata={"bag_id": bag_id, "scan_id": str(scan.id)},
        )
        spin_awarded = await self._grant_daily_spin(user_id, now)

        await self._db.commit()
        store.record_scan("accepted")
        logger.info(
            "Accepted bag scan",
            user_id=str(user_id),
            bag_id=bag_id,
            scan_id=str(scan.id),
            spin_awarded=spin_awarded,
        )
        return ScanOutcome(
            scan_id=scan.id,
            points_awarded=points,
            xp_awarded=xp,
            spin_awarded=spin_awarded,
        )

    async def _already_scanned(self, user_id: UUID, bag_pk: UUID) -> bool:
        existing = await self._db.execute(
            select(BagScan.id).where(BagScan.user_id == user_id, BagScan.bag_id == bag_pk)
        )
        return existing.scalar_one_or_none() is not None

    async def _resolve_bag(self, bag_id: str) -> Bag:
        """Fetch the bag, creating it under the default batch when first seen."""

        result = await self._db.execute(select(Bag).where(Bag.bag_id == bag_id))
        bag = result.scalar_one_or_none()
        if bag is not None:
            return bag

        batch = await self._default_batch()
        bag = Bag(bag_id=bag_id, batch_id=batch.id, hmac_signature=self._signer.sign(bag_id))
        self._db.add(bag)
        try:
            await self._db.flush()
            logger.info("Registered legacy bag", bag_id=bag_id, batch_id=str(batch.id))
        except IntegrityError:
            await self._db.rollback()
            logger.warning("Detected race when registering bag", bag_id=bag_id)
            result = await self._db.execute(select(Bag).where(Bag.bag_id == bag_id))
            return result.scalar_one()
        return bag

    async def _default_batch(self) -> BagBatch:
        stmt = select(BagBatch).where(BagBatch.slug == settings.default_batch_slug)
        batch = (await self._db.execute(stmt)).scalar_one_or_none()
        if batch is not None:
            return batch

        batch = BagBatch(slug=settings.default_batch_slug, name=settings.default_batch_name)
        self._db.add(batch)
        try:
            await self._db.flush()
        except IntegrityError:
            await self._db.rollback()
            logger.warning("Detected race when creating default bag batch")
            return (await self._db.execute(stmt)).scalar_one()
        return batch

    async def _grant_daily_spin(self, user_id: UUID, now: datetime) -> bool:
        """Grant one spin unless the user already received one today."""

        day_start = start_of_day(now, settings.spin_grant_timezone)
        stmt = (
            update(User)
            .where(
                User.id == user_id,
                or_(User.last_spin_grant_at.is_(None), User.last_spin_grant_at < day_start),
            )
            .values(spins_available=User.spins_available + 1, last_spin_grant_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self._db.execute(stmt)
        return result.rowcount == 1
