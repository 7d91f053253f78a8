import asyncio
import os
import tempfile
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

# Point the app at a throw-away database before anything imports app.config
_tmpdir = tempfile.mkdtemp(prefix="pitchroom-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_tmpdir}/app.db"
os.environ["DEBUG"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from starlette.websockets import WebSocketState

from app import models  # noqa: F401
from app.database import Base, async_session, init_models
from app.models.funding_round import FundingRound, FundingRoundStatus
from app.models.investor import Investor
from app.models.offer import Offer, OfferStatus
from app.models.pitch_room import PitchRoom
from app.models.startup import Startup
from app.models.user import User, UserRole
from app.routers.auth import COOKIE_KEY, create_access_token


async def seed_marketplace(session) -> SimpleNamespace:
    """
    One founder with a startup and an active round (500k for 8%), two investors
    and an outsider. Ben has an ``offered`` 250k for 5%; Cleo has no offer yet.
    Ada and Ben share a pitch room.
    """
    now = datetime.now(timezone.utc)

    founder = User(username="ada", email="ada@example.com", name="Ada Founder", role=UserRole.FOUNDER)
    ben_user = User(username="ben", email="ben@example.com", name="Ben Capital", role=UserRole.INVESTOR)
    cleo_user = User(username="cleo", email="cleo@example.com", name="Cleo Angel", role=UserRole.INVESTOR)
    outsider = User(username="otto", email="otto@example.com", name="Otto Outsider", role=UserRole.INVESTOR)
    session.add_all([founder, ben_user, cleo_user, outsider])
    await session.flush()

    ben = Investor(user_id=ben_user.id, name="Ben Capital", company="Northwind Ventures")
    cleo = Investor(user_id=cleo_user.id, name="Cleo Angel", company="Angel")
    startup = Startup(user_id=founder.id, name="Nimbus Labs")
    session.add_all([ben, cleo, startup])
    await session.flush()

    funding_round = FundingRound(
        startup_id=startup.id,
        ask_amount=500000,
        equity_offered=8,
        status=FundingRoundStatus.ACTIVE,
        closing_date=now + timedelta(days=14),
    )
    session.add(funding_round)
    await session.flush()

    offer = Offer(
        funding_round_id=funding_round.id,
        investor_id=ben.id,
        amount=250000,
        equity_percentage=5,
        status=OfferStatus.OFFERED,
    )
    room = PitchRoom(
        startup_id=startup.id,
        investor_id=ben.id,
        startup_user_id=founder.id,
        investor_user_id=ben_user.id,
        name="Nimbus Labs × Northwind",
        scheduled_at=now - timedelta(hours=1),
    )
    session.add_all([offer, room])
    await session.commit()

    return SimpleNamespace(
        founder_user_id=founder.id,
        ben_user_id=ben_user.id,
        cleo_user_id=cleo_user.id,
        outsider_user_id=outsider.id,
        ben_id=ben.id,
        cleo_id=cleo.id,
        startup_id=startup.id,
        round_id=funding_round.id,
        offer_id=offer.id,
        room_id=room.id,
    )


def auth(user_id: str) -> dict:
    """Request headers carrying a session cookie for ``user_id``."""
    return {"Cookie": f"{COOKIE_KEY}={create_access_token(user_id)}"}


class FakeSocket:
    """Records frames sent by the registry; optionally fails or reports as closed."""

    def __init__(self, name="socket", fail=False, closed=False, delay=0):
        self.name = name
        self.sent = []
        self.fail = fail
        self.delay = delay
        self.client_state = WebSocketState.DISCONNECTED if closed else WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED

    async def send_json(self, data):
        for _ in range(self.delay):
            await asyncio.sleep(0)
        if self.fail:
            raise RuntimeError(f"{self.name} is broken")
        self.sent.append(data)

    def frames(self, kind):
        return [f for f in self.sent if f["type"] == kind]


# ── Service-level fixtures: an isolated database per test ──

@pytest.fixture
async def sessions(tmp_path):
    test_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/ledger.db", poolclass=NullPool)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(bind=test_engine, expire_on_commit=False)
    await test_engine.dispose()


@pytest.fixture
async def db(sessions):
    async with sessions() as session:
        yield session


@pytest.fixture
async def market(db):
    return await seed_marketplace(db)


# ── API-level fixtures: the application database, reset per test ──

async def _reset_app_db() -> SimpleNamespace:
    await init_models(reset=True)
    async with async_session() as session:
        return await seed_marketplace(session)


@pytest.fixture
def seeded():
    return asyncio.run(_reset_app_db())


@pytest.fixture
def client(seeded):
    from app.main import app

    with TestClient(app) as test_client:
        yield test_client
