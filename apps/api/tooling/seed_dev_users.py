"""Seed development players into the API database."""

from __future__ import annotations

import asyncio
import os
from typing import TypedDict

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from snapbag_api.core.settings import settings
from snapbag_api.models.user import User


class SeedUser(TypedDict):
    email: str
    display_name: str
    province: str | None
    spins_available: int


DEV_USERS: list[SeedUser] = [
    {
        "email": os.getenv("DEV_PLAYER_EMAIL", "player@snapbag.dev").lower(),
        "display_name": "Player QA",
        "province": os.getenv("DEV_PLAYER_PROVINCE", "Utrecht"),
        "spins_available": 3,
    },
    {
        "email": os.getenv("DEV_NATIONAL_PLAYER_EMAIL", "national@snapbag.dev").lower(),
        "display_name": "National QA",
        "province": None,
        "spins_available": 0,
    },
]


async def seed_users(session: AsyncSession) -> None:
    for user in DEV_USERS:
        with session.no_autoflush:
            existing = await session.execute(select(User).where(User.email == user["email"]))
        record = existing.scalar_one_or_none()
        if record:
            record.display_name = user["display_name"]
            record.province = user["province"]
            record.spins_available = user["spins_available"]
        else:
            session.add(
                User(
                    email=user["email"],
                    display_name=user["display_name"],
                    province=user["province"],
                    spins_available=user["spins_available"],
                )
            )
    await session.commit()


async def main() -> None:
    engine = create_async_engine(settings.database_url, future=True)
    session_factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

    try:
        async with session_factory() as session:
            await seed_users(session)
        print("Development players ready")
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
