from __future__ import annotations
import os
import uuid
from datetime import date, datetime, timedelta, timezone

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import httpx
import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from fshome.auth_deps import AdminContext
from fshome.db import Base, get_session
from fshome.main import app
from fshome.models.admin import AdminUser
from fshome.models.challenge import WeeklyChallenge, ChallengeMode
from fshome.models.honor import UserHonor  # noqa: F401  (table registration)
from fshome.models.participation import UserParticipation
from fshome.models.points import UserPoints
from fshome.models.season import Season
from fshome.models.suggestion import UserSuggestion
from fshome.security import hash_password, make_access_token

PASSWORD = "supersecret"
T0 = datetime(2026, 7, 1, 12, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest_asyncio.fixture
async def client(session_factory):
    async def _override():
        async with session_factory() as s:
            yield s

    app.dependency_overrides[get_session] = _override
    async with AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def _make_admin(session, email: str, role: str) -> AdminUser:
    row = AdminUser(email=email, password_hash=hash_password(PASSWORD), nickname=email.split("@")[0], role=role)
    session.add(row)
    await session.commit()
    return row


@pytest_asyncio.fixture
async def admin_user(session) -> AdminUser:
    return await _make_admin(session, "ops@fshome.app", "admin")


@pytest_asyncio.fixture
async def super_admin_user(session) -> AdminUser:
    return await _make_admin(session, "root@fshome.app", "super_admin")


@pytest.fixture
def admin(admin_user) -> AdminContext:
    return AdminContext(admin_id=admin_user.id, email=admin_user.email, role=admin_user.role)


@pytest.fixture
def auth(admin_user) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_access_token(str(admin_user.id), admin_user.role)}"}


@pytest.fixture
def super_auth(super_admin_user) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_access_token(str(super_admin_user.id), super_admin_user.role)}"}


class Factory:
    """Direct-to-table seeding for rows the admin API never creates (user activity)."""

    def __init__(self, session):
        self.session = session

    async def season(self, name: str = "2026 Q3", status: str = "active", **kw) -> Season:
        row = Season(
            name=name,
            year=kw.pop("year", 2026),
            quarter=kw.pop("quarter", 3),
            start_date=kw.pop("start_date", date(2026, 7, 1)),
            end_date=kw.pop("end_date", date(2026, 9, 30)),
            status=status,
            **kw,
        )
        self.session.add(row)
        await self.session.commit()
        return row

    async def challenge(self, season: Season, week_number: int = 1, status: str = "active", **kw) -> WeeklyChallenge:
        start = date(2026, 7, 1) + timedelta(weeks=week_number - 1)
        row = WeeklyChallenge(
            season_id=season.id,
            title=kw.pop("title", f"Week {week_number}"),
            week_number=week_number,
            start_date=start,
            end_date=start + timedelta(days=6),
            status=status,
            **kw,
        )
        self.session.add(row)
        await self.session.commit()
        return row

    async def mode(self, challenge: WeeklyChallenge, mode_type: str = "simple", points_reward: int = 10) -> ChallengeMode:
        row = ChallengeMode(
            challenge_id=challenge.id,
            mode_type=mode_type,
            title=f"{mode_type} mode",
            moves_required=["ATW", "HTW"],
            points_reward=points_reward,
        )
        self.session.add(row)
        await self.session.commit()
        return row

    async def participation(self, mode: ChallengeMode, user_id: uuid.UUID | None = None, status: str = "pending") -> UserParticipation:
        row = UserParticipation(
            user_id=user_id or uuid.uuid4(),
            challenge_id=mode.challenge_id,
            mode_id=mode.id,
            video_url="https://cdn.fshome.app/v/clip.mp4",
            status=status,
        )
        self.session.add(row)
        await self.session.commit()
        return row

    async def points(self, season: Season, user_id: uuid.UUID, points: int, point_type: str, earned_at: datetime = T0) -> UserPoints:
        row = UserPoints(user_id=user_id, season_id=season.id, point_type=point_type, points=points, earned_at=earned_at)
        self.session.add(row)
        await self.session.commit()
        return row

    async def suggestion(self, season: Season, text: str = "Around the world combo week", status: str = "pending") -> UserSuggestion:
        row = UserSuggestion(user_id=uuid.uuid4(), season_id=season.id, suggestion_text=text, status=status)
        self.session.add(row)
        await self.session.commit()
        return row


@pytest.fixture
def factory(session) -> Factory:
    return Factory(session)
