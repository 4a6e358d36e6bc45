import sys
from pathlib import Path
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine


def _configure_path() -> None:
    src_path = Path(__file__).resolve().parents[1] / "src"
    if src_path.exists():
        sys.path.insert(0, str(src_path))


_configure_path()

import snapbag_api.models  # noqa: E402,F401
from snapbag_api.app import create_app  # noqa: E402
from snapbag_api.core.settings import settings  # noqa: E402
from snapbag_api.db.base import Base  # noqa: E402
from snapbag_api.db.session import get_session  # noqa: E402
from snapbag_api.models.partner import Partner  # noqa: E402
from snapbag_api.models.user import User  # noqa: E402
from snapbag_api.models.wheel import WheelPrize, WheelPrizeRewardType  # noqa: E402
from snapbag_api.observability.rewards import get_reward_store  # noqa: E402


# (position, title, start, end, points, color)
SAMPLE_SEGMENTS = [
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


@pytest.fixture(autouse=True)
def reward_settings(monkeypatch):
    monkeypatch.setattr(settings, "bag_hmac_secret", "test-secret")
    monkeypatch.setattr(settings, "spin_grant_timezone", "UTC")
    monkeypatch.setattr(settings, "tracing_enabled", False)
    monkeypatch.setattr(settings, "wheel_trust_client_angle", False)
    monkeypatch.setattr(settings, "enforce_partner_match", True)
    monkeypatch.setattr(settings, "internal_api_key", "")
    monkeypatch.setattr(settings, "partner_api_key", "")
    get_reward_store().reset()
    yield settings
    get_reward_store().reset()


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

    try:
        yield factory
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def app_with_db(session_factory):
    app = create_app()

    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session

    try:
        yield app, session_factory
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(session_factory):
    async def _make(**fields) -> User:
        fields.setdefault("email", f"player-{uuid4().hex[:8]}@example.com")
        async with session_factory() as session:
            user = User(**fields)
            session.add(user)
            await session.commit()
            return user

    return _make


@pytest_asyncio.fixture
async def sample_wheel(session_factory):
    """Twelve national points prizes sponsored by a single partner."""

    async with session_factory() as session:
        partner = Partner(name="Snapbag", slug="snapbag")
        session.add(partner)
        await session.flush()

        prizes = [
            WheelPrize(
                position=position,
                partner_id=partner.id,
                title=title,
                color=color,
                start_angle=start,
                end_angle=end,
                validity_days=30,
                is_national=True,
                provinces=[],
                reward_type=WheelPrizeRewardType.POINTS,
                points_amount=points,
            )
            for position, title, start, end, points, color in SAMPLE_SEGMENTS
        ]
        session.add_all(prizes)
        await session.commit()

    return partner, prizes
