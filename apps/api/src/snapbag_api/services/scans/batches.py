"""Issue batches of signed bags for printing."""

from __future__ import annotations

import re
from uuid import uuid4

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from snapbag_api.models.bag import Bag, BagBatch
from snapbag_api.services.security import BagTokenSigner


def slugify(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
    return slug or "batch"


class BagBatchService:
    def __init__(self, db_session: AsyncSession, *, signer: BagTokenSigner | None = None) -> None:
        self._db = db_session
        self._signer = signer or BagTokenSigner()

    async def generate_batch(
        self,
        name: str,
        quantity: int,
        description: str | None = None,
        *,
        slug: str | None = None,
    ) -> tuple[BagBatch, list[Bag]]:
        """Create ``quantity`` signed bags under a new batch.

        Bag ids take the form ``<first 8 hex of the batch id>_<six digit index>``.
        """

        if quantity <= 0:
            raise ValueError("Batch quantity must be positive")

        batch_id = uuid4()
        batch = BagBatch(
            id=batch_id,
            slug=slug or f"{slugify(name)}-{batch_id.hex[:8]}",
            name=name,
            description=description,
            total_codes=quantity,
        )
        self._db.add(batch)

        prefix = batch_id.hex[:8]
        bags: list[Bag] = []
        for index in range(1, quantity + 1):
            bag_id = f"{prefix}_{index:06d}"
            bag = Bag(bag_id=bag_id, batch_id=batch_id, hmac_signature=self._signer.sign(bag_id))
            self._db.add(bag)
            bags.append(bag)

        await self._db.flush()
        await self._db.commit()
        logger.info("Generated bag batch", batch_id=str(batch_id), slug=batch.slug, quantity=quantity)
        return batch, bags
