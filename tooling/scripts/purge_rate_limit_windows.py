"""Delete rate limit rows that no longer fall inside any quota window."""

# meta: script: rate-limit-purge

from __future__ import annotations

import argparse
import asyncio
import datetime as dt
import sys
from pathlib import Path

from loguru import logger


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Purge stale rate limit windows")
    parser.add_argument(
        "--older-than-minutes",
        type=int,
        default=24 * 60,
        help="Remove rows recorded before now minus this many minutes.",
    )
    return parser.parse_args()


async def _purge(older_than_minutes: int) -> int:
    repo_root = Path(__file__).resolve().parents[2]
    api_src = repo_root / "apps" / "api" / "src"
    if str(api_src) not in sys.path:
        sys.path.insert(0, str(api_src))

    from snapbag_api.db.session import async_session  # type: ignore import-position
    from snapbag_api.services.security import RateLimiter  # type: ignore import-position

    cutoff = dt.datetime.now(dt.timezone.utc) - dt.timedelta(minutes=older_than_minutes)
    async with async_session() as session:
        removed = await RateLimiter(session).purge(cutoff)
        await session.commit()
    return removed


def main() -> None:
    args = parse_args()
    removed = asyncio.run(_purge(args.older_than_minutes))
    logger.info("Rate limit purge finished", removed=removed)


if __name__ == "__main__":
    main()
