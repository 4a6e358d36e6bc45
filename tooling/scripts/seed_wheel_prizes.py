"""Seed the twelve-segment sample prize wheel."""

# meta: script: wheel-prizes-seed

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from loguru import logger


# (position, title, start, end, points, color)
SAMPLE_SEGMENTS: list[tuple[int, str, int, int, int, str]] = [
    (1, "10 Punten", 345, 15, 10, "#8B5CF6"),
    (2, "25 Punten", 15, 45, 25, "#10B981"),
    (3, "15 Punten", 45, 75, 15, "#3B82F6"),
    (4, "JACKPOT", 75, 105, 100, "#F59E0B"),
    (5, "55 Punten", 105, 135, 55, "#EAB308"),
    (6, "Helaas", 135, 165, 0, "#6B7280"),
    (7, "55 Punten", 165, 195, 55, "#EC4899"),
    (8, "10 Punten", 195, 225, 10, "#06B6D4"),
    (9, "Helaas", 225, 255, 0, "#059669"),
    (10, "20 Punten", 255, 285, 20, "#1D4ED8"),
    (11, "10 Punten", 285, 315, 10, "#DC2626"),
    (12, "30 Punten", 315, 345, 30, "#7C3AED"),
]


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed the sample Snapbag prize wheel")
    parser.add_argument("--partner-slug", default="snapbag", help="Partner that sponsors the sample prizes.")
    parser.add_argument("--partner-name", default="Snapbag", help="Display name for a newly created partner.")
    parser.add_argument("--validity-days", type=int, default=30, help="Voucher validity for every segment.")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Execute inside a transaction and roll back changes for verification.",
    )
    return parser.parse_args()


async def _seed(args: argparse.Namespace) -> int:
    repo_root = Path(__file__).resolve().parents[2]
    api_src = repo_root / "apps" / "api" / "src"
    if str(api_src) not in sys.path:
        sys.path.insert(0, str(api_src))

    from sqlalchemy import select  # type: ignore import-position

    from snapbag_api.db.session import async_session  # type: ignore import-position
    from snapbag_api.models.partner import Partner  # type: ignore import-position
    from snapbag_api.models.wheel import WheelPrize, WheelPrizeRewardType  # type: ignore import-position

    async with async_session() as session:
        partner = (
            await session.execute(select(Partner).where(Partner.slug == args.partner_slug))
        ).scalar_one_or_none()
        if partner is None:
            partner = Partner(name=args.partner_name, slug=args.partner_slug)
            session.add(partner)
            await session.flush()
            logger.info("Created partner", slug=partner.slug)

        existing = {
            prize.position: prize
            for prize in (await session.execute(select(WheelPrize))).scalars().all()
        }
        for position, title, start, end, points, color in SAMPLE_SEGMENTS:
            prize = existing.get(position)
            if prize is None:
                prize = WheelPrize(position=position)
                session.add(prize)
            prize.partner_id = partner.id
            prize.title = title
            prize.description = "Probeer het opnieuw" if points == 0 else f"{points} punten voor je saldo"
            prize.color = color
            prize.start_angle = start
            prize.end_angle = end
            prize.validity_days = args.validity_days
            prize.is_national = True
            prize.provinces = []
            prize.reward_type = WheelPrizeRewardType.POINTS
            prize.points_amount = points
            prize.is_active = True

        if args.dry_run:
            await session.rollback()
            logger.info("Dry run complete; changes rolled back")
        else:
            await session.commit()
            logger.info("Seeded wheel prizes", count=len(SAMPLE_SEGMENTS), partner=partner.slug)
    return len(SAMPLE_SEGMENTS)


def main() -> None:
    args = parse_args()
    asyncio.run(_seed(args))


if __name__ == "__main__":
    main()
